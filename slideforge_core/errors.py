"""
SlideForge Error Taxonomy
=========================

Every failure that can reach a caller is a ``SlideForgeError`` subclass
carrying the HTTP status it maps to, a short error label, optional
details and a human-readable suggestion. The web layer renders them as
``{error, details, suggestion}`` JSON bodies.

    ValidationError          400  missing/invalid input, user-correctable
    ConfigurationError       400  a credential required by the path is not configured
    UpstreamAuthError        401  a collaborator rejected our credentials
    UpstreamRateLimitError   429  a collaborator throttled us
    UpstreamUnavailable      500  a collaborator failed (or all alternatives did)
    SerializationError       500  local document assembly / write failure
    FilesystemError          500  output directory or temp file failure

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from typing import Any, Dict, Optional


class SlideForgeError(Exception):
    """Base class for all SlideForge errors."""

    status_code: int = 500
    error: str = "Internal error"
    default_suggestion: str = "Please try again or contact support if the issue persists."

    def __init__(
        self,
        details: str = "",
        suggestion: Optional[str] = None,
        error: Optional[str] = None,
    ):
        super().__init__(details or self.error)
        self.details = details
        self.suggestion = suggestion if suggestion is not None else self.default_suggestion
        if error is not None:
            self.error = error

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"error": self.error}
        if self.details:
            d["details"] = self.details
        if self.suggestion:
            d["suggestion"] = self.suggestion
        return d


class ValidationError(SlideForgeError):
    status_code = 400
    error = "Invalid request"
    default_suggestion = "Check the form fields and try again."


class ConfigurationError(SlideForgeError):
    status_code = 400
    error = "Service not configured"
    default_suggestion = "Add the missing key to your .env file or slideforge.yaml."


class UpstreamAuthError(SlideForgeError):
    status_code = 401
    error = "Authentication error"
    default_suggestion = "Verify your API key is correct and has sufficient credits."


class UpstreamRateLimitError(SlideForgeError):
    status_code = 429
    error = "Rate limit exceeded"
    default_suggestion = "Wait a few minutes before trying again."


class UpstreamUnavailable(SlideForgeError):
    status_code = 500
    error = "Upstream service unavailable"
    default_suggestion = "Please check your API keys and try again."


class SerializationError(SlideForgeError):
    status_code = 500
    error = "Failed to generate presentation"


class FilesystemError(SlideForgeError):
    status_code = 500
    error = "File system error"
    default_suggestion = "Check file permissions and try again."

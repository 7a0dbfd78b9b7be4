"""
SlideForge Core - presentation generation pipeline

Configuration, logging, error taxonomy, LLM backends, external collaborators
and the generation orchestrator. The document assembly engine lives in
``slideforge_core.deck``.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from .version import __version__

from .errors import (
    SlideForgeError,
    ValidationError,
    ConfigurationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamUnavailable,
    SerializationError,
    FilesystemError,
)
from .config import SlideForgeConfig, get_config, load_config, reload_config
from .logging_utils import GenerationEventLog, LogLevel, mask_secrets, setup_logging
from .resilience import FallbackChain, FailureAction, ChainExhausted
from .llm_backends import BaseLLM, OpenAILLM, ClaudeLLM, OllamaLLM, create_llm_backend
from .orchestrator import (
    GenerationOrchestrator,
    GenerationResult,
    GenerationState,
    GenerationTrace,
)

__all__ = [
    "__version__",
    "SlideForgeError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamAuthError",
    "UpstreamRateLimitError",
    "UpstreamUnavailable",
    "SerializationError",
    "FilesystemError",
    "SlideForgeConfig",
    "get_config",
    "load_config",
    "reload_config",
    "GenerationEventLog",
    "LogLevel",
    "mask_secrets",
    "setup_logging",
    "FallbackChain",
    "FailureAction",
    "ChainExhausted",
    "BaseLLM",
    "OpenAILLM",
    "ClaudeLLM",
    "OllamaLLM",
    "create_llm_backend",
    "GenerationOrchestrator",
    "GenerationResult",
    "GenerationState",
    "GenerationTrace",
]

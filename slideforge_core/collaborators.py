"""
External collaborators other than the text generator.

- DesignServiceClient: design-template service (Canva-style REST API) that
  builds a presentation from an outline and exports it as .pptx.
- PlaceholderEditorClient: document-editing service (Cloudmersive-style)
  that replaces every occurrence of a literal string inside a .pptx.

Both use a ``requests.Session`` and map HTTP failures onto the SlideForge
error taxonomy. Fallback decisions (demo handle, local deck) are made here
only where the service contract allows it; the orchestrator owns the rest.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from slideforge_core.config import DesignServiceConfig, EditorServiceConfig
from slideforge_core.deck.models import Outline
from slideforge_core.errors import (
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

DEMO_TEMPLATES: List[Dict[str, str]] = [
    {
        "id": "business",
        "name": "Business Professional",
        "thumbnail": "https://via.placeholder.com/300x200/6366F1/FFFFFF?text=Business",
        "category": "Business",
    },
    {
        "id": "creative",
        "name": "Creative Modern",
        "thumbnail": "https://via.placeholder.com/300x200/8B5CF6/FFFFFF?text=Creative",
        "category": "Creative",
    },
    {
        "id": "minimal",
        "name": "Minimal Clean",
        "thumbnail": "https://via.placeholder.com/300x200/6B7280/FFFFFF?text=Minimal",
        "category": "Minimal",
    },
    {
        "id": "tech",
        "name": "Technology",
        "thumbnail": "https://via.placeholder.com/300x200/059669/FFFFFF?text=Tech",
        "category": "Technology",
    },
]


def _raise_for_status(response: requests.Response, service: str) -> None:
    """Translate an HTTP error status into a SlideForge error."""
    status = response.status_code
    if status < 400:
        return
    if status in (401, 403):
        raise UpstreamAuthError(f"{service} rejected the credentials (HTTP {status})")
    if status == 429:
        raise UpstreamRateLimitError(f"{service} is throttling requests")
    raise UpstreamUnavailable(f"{service} failed with HTTP {status}")


# =============================================================================
# Design service
# =============================================================================

class DesignServiceClient:
    """
    Client for the design-template service.

    Example:
        client = DesignServiceClient(config.design_service)
        handle = client.create_presentation(outline, template="business")
        client.export_pptx(handle["id"], Path("generated/deck.pptx"))
    """

    SERVICE = "Design service"

    def __init__(self, config: DesignServiceConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.config.client_id and self.config.client_secret)

    def _access_token(self) -> str:
        """Client-credentials token."""
        try:
            r = self._session.post(
                self.config.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                },
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Failed to authenticate with {self.SERVICE}: {e}") from e
        _raise_for_status(r, self.SERVICE)
        try:
            return r.json()["access_token"]
        except (ValueError, KeyError) as e:
            raise UpstreamUnavailable(f"Malformed token response from {self.SERVICE}") from e

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token()}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def demo_handle(outline: Outline) -> Dict[str, Any]:
        return {
            "id": f"demo-{int(time.time() * 1000)}",
            "title": outline.title,
            "status": "created",
            "url": "https://www.canva.com/demo",
        }

    def create_presentation(self, outline: Outline, template: str = "business") -> Dict[str, Any]:
        """
        Create a presentation from an outline.

        Returns:
            Service handle ``{id, ...}``; a demo handle when the service fails
            for any reason other than rejected credentials

        Raises:
            UpstreamAuthError: credentials rejected
        """
        payload = {
            "title": outline.title,
            "template": template or "business",
            "slides": [
                {"title": s.title, "content": list(s.content), "slideNumber": i + 1}
                for i, s in enumerate(outline.slides)
            ],
        }
        try:
            r = self._session.post(
                f"{self.base_url}/v1/presentations",
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
            _raise_for_status(r, self.SERVICE)
            handle = r.json()
        except UpstreamAuthError:
            raise
        except (requests.RequestException, ValueError, UpstreamUnavailable, UpstreamRateLimitError) as e:
            logger.warning(f"{self.SERVICE} create failed, using demo handle: {e}")
            return self.demo_handle(outline)

        logger.info(f"{self.SERVICE} presentation created: {handle.get('id')}")
        return handle

    def export_pptx(self, presentation_id: str, dest: Path) -> Path:
        """
        Export a presentation as .pptx into ``dest``.

        Raises:
            UpstreamAuthError: credentials rejected
            UpstreamUnavailable: any other export failure
        """
        try:
            r = self._session.post(
                f"{self.base_url}/v1/presentations/{presentation_id}/export",
                json={"format": "pptx", "quality": "high"},
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{self.SERVICE} export failed: {e}") from e
        _raise_for_status(r, self.SERVICE)

        dest = Path(dest)
        dest.write_bytes(r.content)
        return dest

    def list_templates(self) -> List[Dict[str, Any]]:
        """Presentation templates; the four demo templates when the service fails."""
        if not self.configured:
            return [dict(t) for t in DEMO_TEMPLATES]
        try:
            r = self._session.get(
                f"{self.base_url}/v1/templates",
                params={"type": "presentation"},
                headers=self._headers(),
                timeout=self.config.timeout,
            )
            _raise_for_status(r, self.SERVICE)
            return r.json().get("templates") or []
        except (requests.RequestException, ValueError, AttributeError,
                UpstreamAuthError, UpstreamRateLimitError, UpstreamUnavailable) as e:
            logger.warning(f"{self.SERVICE} templates unavailable, using demo templates: {e}")
            return [dict(t) for t in DEMO_TEMPLATES]


# =============================================================================
# Placeholder editor
# =============================================================================

class PlaceholderEditorClient:
    """
    Client for the ``replace-all`` document-editing endpoint.

    Each call uploads the whole file and writes the edited file back in
    place. Any failure is fatal for the request.
    """

    SERVICE = "Placeholder editor"
    ENDPOINT = "/convert/edit/pptx/replace-all"

    def __init__(self, config: EditorServiceConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key)

    def replace_all(self, path: Path, match: str, replacement: str) -> None:
        """Replace every occurrence of ``match`` in the deck at ``path``."""
        path = Path(path)
        try:
            with path.open("rb") as fh:
                r = self._session.post(
                    f"{self.base_url}{self.ENDPOINT}",
                    files={"inputFile": (path.name, fh, PPTX_MIME)},
                    data={"matchString": match, "replaceString": replacement},
                    headers={"Apikey": self.config.api_key or ""},
                    timeout=self.config.timeout,
                )
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"{self.SERVICE} error for {match!r}: {e}") from e
        _raise_for_status(r, self.SERVICE)
        path.write_bytes(r.content)

    def substitute(self, path: Path, values: Dict[str, str]) -> int:
        """Apply every token → value pair in order; returns the number applied."""
        for token, value in values.items():
            logger.debug(f"Replacing {token}")
            self.replace_all(path, token, value)
        return len(values)

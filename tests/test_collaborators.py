"""
Tests for the design-service and placeholder-editor clients

HTTP is replaced by a recording fake session; no network access.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import pytest
import requests

from slideforge_core.collaborators import (
    DEMO_TEMPLATES,
    DesignServiceClient,
    PlaceholderEditorClient,
)
from slideforge_core.config import DesignServiceConfig, EditorServiceConfig
from slideforge_core.deck.models import Outline, OutlineSlide
from slideforge_core.errors import UpstreamAuthError, UpstreamUnavailable


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in call order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)


TOKEN = FakeResponse(200, {"access_token": "tok"})

OUTLINE = Outline(
    title="Cloud Migration",
    subtitle="Plan",
    slides=(OutlineSlide("Why", ("Cost", "Scale")), OutlineSlide("How", ("Lift",))),
)


def _design(*responses, configured=True):
    config = DesignServiceConfig(
        client_id="cid" if configured else None,
        client_secret="secret" if configured else None,
    )
    session = FakeSession(*responses)
    return DesignServiceClient(config, session=session), session


class TestDesignServiceClient:
    """Tests for the design-template service client."""

    def test_create_presentation(self):
        """Test the outline payload and returned handle."""
        client, session = _design(TOKEN, FakeResponse(200, {"id": "p-1"}))
        handle = client.create_presentation(OUTLINE, "creative")
        assert handle["id"] == "p-1"
        method, url, kwargs = session.calls[1]
        assert url.endswith("/v1/presentations")
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["json"]["template"] == "creative"
        assert kwargs["json"]["slides"][1] == {"title": "How", "content": ["Lift"], "slideNumber": 2}

    def test_create_failure_gives_demo_handle(self):
        """Test a service failure yields a demo handle."""
        client, _ = _design(TOKEN, FakeResponse(500))
        handle = client.create_presentation(OUTLINE)
        assert handle["id"].startswith("demo-")
        assert handle["title"] == "Cloud Migration"

    def test_create_connection_error_gives_demo_handle(self):
        """Test a connection failure yields a demo handle."""
        client, _ = _design(requests.ConnectionError("down"))
        assert client.create_presentation(OUTLINE)["id"].startswith("demo-")

    def test_create_auth_failure_raises(self):
        """Test rejected credentials are not hidden."""
        client, _ = _design(FakeResponse(401))
        with pytest.raises(UpstreamAuthError):
            client.create_presentation(OUTLINE)

    def test_export(self, temp_dir):
        """Test exported bytes are written to the destination."""
        client, session = _design(TOKEN, FakeResponse(200, content=b"PPTX"))
        dest = client.export_pptx("p-1", temp_dir / "deck.pptx")
        assert dest.read_bytes() == b"PPTX"
        assert session.calls[1][1].endswith("/v1/presentations/p-1/export")

    def test_export_failure(self, temp_dir):
        """Test export failures raise."""
        client, _ = _design(TOKEN, FakeResponse(502))
        with pytest.raises(UpstreamUnavailable):
            client.export_pptx("p-1", temp_dir / "deck.pptx")

    def test_templates_unconfigured(self):
        """Test demo templates without credentials and without HTTP."""
        client, session = _design(configured=False)
        templates = client.list_templates()
        assert [t["id"] for t in templates] == [t["id"] for t in DEMO_TEMPLATES]
        assert session.calls == []

    def test_templates_from_service(self):
        """Test templates returned by the service."""
        client, _ = _design(TOKEN, FakeResponse(200, {"templates": [{"id": "t1"}]}))
        assert client.list_templates() == [{"id": "t1"}]

    def test_templates_failure(self):
        """Test demo templates when the service fails."""
        client, _ = _design(FakeResponse(401))
        assert len(client.list_templates()) == 4


class TestPlaceholderEditorClient:
    """Tests for the replace-all editing client."""

    def _client(self, *responses, api_key="cm-key"):
        session = FakeSession(*responses)
        return PlaceholderEditorClient(EditorServiceConfig(api_key=api_key), session=session), session

    def test_configured(self):
        """Test the client is configured only with a key."""
        assert self._client()[0].configured
        assert not self._client(api_key=None)[0].configured

    def test_replace_all(self, temp_dir):
        """Test the multipart request and in-place rewrite."""
        path = temp_dir / "deck.pptx"
        path.write_bytes(b"before")
        client, session = self._client(FakeResponse(200, content=b"after"))
        client.replace_all(path, "{{TITLE}}", "Cloud")
        assert path.read_bytes() == b"after"
        _, url, kwargs = session.calls[0]
        assert url.endswith("/convert/edit/pptx/replace-all")
        assert kwargs["headers"] == {"Apikey": "cm-key"}
        assert kwargs["data"] == {"matchString": "{{TITLE}}", "replaceString": "Cloud"}
        assert "inputFile" in kwargs["files"]

    def test_substitute_applies_in_order(self, temp_dir):
        """Test each token is sent once, in order."""
        path = temp_dir / "deck.pptx"
        path.write_bytes(b"x")
        client, session = self._client(FakeResponse(200, content=b"1"), FakeResponse(200, content=b"2"))
        assert client.substitute(path, {"{{A}}": "a", "{{B}}": "b"}) == 2
        assert [c[2]["data"]["matchString"] for c in session.calls] == ["{{A}}", "{{B}}"]
        assert path.read_bytes() == b"2"

    def test_failure_is_fatal(self, temp_dir):
        """Test an editing failure raises."""
        path = temp_dir / "deck.pptx"
        path.write_bytes(b"x")
        client, _ = self._client(FakeResponse(500))
        with pytest.raises(UpstreamUnavailable):
            client.replace_all(path, "{{A}}", "a")

    def test_bad_key(self, temp_dir):
        """Test a rejected key maps to an auth error."""
        path = temp_dir / "deck.pptx"
        path.write_bytes(b"x")
        client, _ = self._client(FakeResponse(401))
        with pytest.raises(UpstreamAuthError):
            client.replace_all(path, "{{A}}", "a")

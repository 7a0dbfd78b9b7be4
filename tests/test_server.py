"""
Tests for the SlideForge Web API (FastAPI TestClient)

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pptx import Presentation

from slideforge_core.orchestrator import GenerationOrchestrator
from slideforge_web.routers.generation import PPTX_MEDIA_TYPE
from slideforge_web.server import create_app

from conftest import ScriptedLLM


FORM = {
    "topic": "Digital Transformation Strategy",
    "audience": "Executive team",
    "style": "Professional",
    "slides": 10,
    "presentationType": "business",
    "theme": "ai-tech",
}


@pytest.fixture
def client(config):
    return TestClient(create_app(config))


class TestBasics:
    """Tests for health, index and theme endpoints."""

    def test_health(self, client):
        """Test the health check."""
        r = client.get("/api/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "OK"
        assert "timestamp" in body

    def test_index(self, client):
        """Test the form page is served."""
        r = client.get("/")
        assert r.status_code == 200
        assert "SlideForge" in r.text

    def test_themes(self, client):
        """Test the theme picker data."""
        r = client.get("/api/themes")
        keys = [t["key"] for t in r.json()["themes"]]
        assert "ai-modern" in keys
        assert "modern" not in keys

    def test_themes_with_legacy(self, client):
        """Test legacy themes on request."""
        keys = [t["key"] for t in client.get("/api/themes?legacy=true").json()["themes"]]
        assert "modern" in keys


class TestGenerateContent:
    """Tests for POST /api/generate-content."""

    def test_demo_deck(self, client, config):
        """Test a deck is returned with 200 in demo mode."""
        r = client.post("/api/generate-content", json=FORM)
        assert r.status_code == 200
        assert r.headers["content-type"] == PPTX_MEDIA_TYPE
        assert r.headers["X-Generation-Mode"] == "demo"
        assert r.headers["content-disposition"].startswith("attachment")
        assert "ai-presentation-" in r.headers["content-disposition"]
        prs = Presentation(BytesIO(r.content))
        assert len(prs.slides) == 8

    def test_file_deleted_after_response(self, client, config):
        """Test no generated file survives the response."""
        client.post("/api/generate-content", json=FORM)
        assert list(Path(config.server.output_dir).glob("*.pptx")) == []

    def test_ai_deck(self, config, sample_text):
        """Test model output is used when a backend is available."""
        orch = GenerationOrchestrator(config, llm=ScriptedLLM({}, default=sample_text))
        client = TestClient(create_app(config, orchestrator=orch))
        r = client.post("/api/generate-content", json=FORM)
        assert r.status_code == 200
        assert r.headers["X-Generation-Mode"] == "ai"
        assert r.headers["X-Generation-Model"] == "gpt-4"

    def test_missing_topic(self, client):
        """Test a missing topic is rejected with 400."""
        r = client.post("/api/generate-content", json={"slides": 10})
        assert r.status_code == 400
        body = r.json()
        assert body["error"] == "Topic is required"
        assert "suggestion" in body

    def test_blank_topic(self, client):
        """Test a blank topic is rejected."""
        r = client.post("/api/generate-content", json={"topic": "   "})
        assert r.status_code == 400

    def test_topic_too_long(self, client):
        """Test topics over 200 characters are rejected."""
        r = client.post("/api/generate-content", json={"topic": "x" * 201})
        assert r.status_code == 400
        assert "200" in r.json()["details"]

    def test_slides_clamped(self, client):
        """Test out-of-range slide counts are clamped."""
        r = client.post("/api/generate-content", json={"topic": "Budget", "slides": 2})
        assert r.status_code == 200
        assert len(Presentation(BytesIO(r.content)).slides) == 5

    def test_slides_as_string(self, client):
        """Test numeric strings are accepted for slides."""
        r = client.post("/api/generate-content", json={"topic": "Budget", "slides": "6"})
        assert r.status_code == 200
        assert len(Presentation(BytesIO(r.content)).slides) == 6

    def test_null_optional_fields_and_fractional_slides(self, client):
        """Test null optional fields are treated as empty and 7.5 slides as 7."""
        r = client.post("/api/generate-content", json={
            "topic": "Cloud",
            "audience": None,
            "style": None,
            "additionalInfo": None,
            "presentationType": None,
            "theme": None,
            "template": None,
            "slides": 7.5,
        })
        assert r.status_code == 200
        assert len(Presentation(BytesIO(r.content)).slides) == 7

    def test_every_model_failing_gives_demo_deck(self, config):
        """Test an exhausted model chain still answers 200 with a demo deck."""
        from slideforge_core.errors import UpstreamUnavailable
        llm = ScriptedLLM({m: UpstreamUnavailable(f"{m} unavailable") for m in config.llm.models})
        orch = GenerationOrchestrator(config, llm=llm)
        client = TestClient(create_app(config, orchestrator=orch))
        r = client.post("/api/generate-content", json=FORM)
        assert r.status_code == 200
        assert r.headers["X-Generation-Mode"] == "demo"
        assert "X-Generation-Model" not in r.headers
        assert llm.calls == config.llm.models
        assert len(Presentation(BytesIO(r.content)).slides) == 8

    def test_malformed_body(self, client):
        """Test a body of the wrong shape gives a 400 error object."""
        r = client.post("/api/generate-content", json={"topic": "Budget", "slides": [1, 2]})
        assert r.status_code == 400
        assert r.json()["error"] == "Invalid request"

    def test_auth_error_is_401(self, config):
        """Test rejected credentials map to 401."""
        from slideforge_core.errors import UpstreamAuthError
        orch = GenerationOrchestrator(config, llm=ScriptedLLM({"gpt-4": UpstreamAuthError("bad")}))
        client = TestClient(create_app(config, orchestrator=orch))
        r = client.post("/api/generate-content", json=FORM)
        assert r.status_code == 401
        assert r.json()["error"] == "Authentication error"


class TestOutlineAndBuild:
    """Tests for outline rendering and the template builder."""

    def test_outline(self, client):
        """Test a caller-supplied outline is rendered."""
        payload = {
            "presentationData": {
                "title": "Cloud Migration",
                "slides": [{"title": "Why", "content": ["Cost", "Scale"]}],
            },
            "template": "ai-creative",
        }
        r = client.post("/api/generate-presentation", json=payload)
        assert r.status_code == 200
        assert len(Presentation(BytesIO(r.content)).slides) == 4

    def test_outline_missing_data(self, client):
        """Test a missing outline is rejected."""
        r = client.post("/api/generate-presentation", json={})
        assert r.status_code == 400
        assert r.json()["error"] == "Presentation data is required"

    def test_outline_missing_slides(self, client):
        """Test an outline without slides is rejected."""
        r = client.post("/api/generate-presentation", json={"presentationData": {"title": "x"}})
        assert r.status_code == 400
        assert r.json()["error"] == "Presentation slides array is required"

    def test_build_without_keys(self, client):
        """Test the builder reports the missing model key."""
        r = client.post("/api/build-presentation", json=FORM)
        assert r.status_code == 400
        assert r.json()["error"] == "OpenAI API key not configured"


class TestDesignEndpoints:
    """Tests for the design-service endpoints."""

    def test_templates(self, client):
        """Test demo templates without credentials."""
        r = client.get("/api/canva/templates")
        assert r.status_code == 200
        assert len(r.json()["templates"]) == 4

    def test_generate_local_fallback(self, client):
        """Test the local stand-in deck without credentials."""
        r = client.post("/api/canva/generate-presentation", json=FORM)
        assert r.status_code == 200
        assert r.headers["X-Generation-Mode"] == "demo"
        assert len(Presentation(BytesIO(r.content)).slides) == 1


class TestRateLimit:
    """Tests for the per-client rate limit."""

    def test_limit_exceeded(self, config):
        """Test the request after the limit is refused with 429."""
        config.rate_limit.enabled = True
        config.rate_limit.max_requests = 2
        client = TestClient(create_app(config))
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health").status_code == 200
        r = client.get("/api/health")
        assert r.status_code == 429
        assert int(r.headers["Retry-After"]) >= 1
        assert r.json()["error"] == "Too many requests"

    def test_remaining_header(self, config):
        """Test allowed responses report the remaining budget."""
        config.rate_limit.enabled = True
        config.rate_limit.max_requests = 5
        client = TestClient(create_app(config))
        assert client.get("/api/health").headers["X-RateLimit-Remaining"] == "4"

    def test_index_not_limited(self, config):
        """Test non-API paths are not counted."""
        config.rate_limit.enabled = True
        config.rate_limit.max_requests = 1
        client = TestClient(create_app(config))
        for _ in range(3):
            assert client.get("/").status_code == 200

"""
Tests for the Generation Orchestrator

All collaborators are offline: a scripted LLM and fake design/editor clients.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import json
import os
import time
from pathlib import Path

import pytest

from slideforge_core.collaborators import DesignServiceClient, PlaceholderEditorClient
from slideforge_core.config import DesignServiceConfig, EditorServiceConfig
from slideforge_core.deck.models import Outline
from slideforge_core.deck.serializer import count_slides, slide_texts
from slideforge_core.errors import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamUnavailable,
)
from slideforge_core.logging_utils import GenerationEventLog
from slideforge_core.orchestrator import (
    GenerationOrchestrator,
    GenerationState,
    build_content_prompt,
    build_outline_prompt,
)

from conftest import ScriptedLLM


OUTLINE_JSON = json.dumps({
    "title": "Cloud Migration",
    "subtitle": "A pragmatic plan",
    "slides": [
        {"title": "Why migrate", "content": ["Lower costs", "Elastic capacity"]},
        {"title": "How we migrate", "content": ["Lift and shift first", "Refactor later"]},
    ],
})


class FakeDesignClient(DesignServiceClient):
    """Design client with canned responses."""

    def __init__(self, configured=True, handle_id="pres-1", export_error=None):
        super().__init__(DesignServiceConfig(client_id="id" if configured else None,
                                             client_secret="secret" if configured else None))
        self.handle_id = handle_id
        self.export_error = export_error
        self.exported_bytes = b""
        self.created = []

    def create_presentation(self, outline, template="business"):
        self.created.append((outline, template))
        return {"id": self.handle_id}

    def export_pptx(self, presentation_id, dest):
        if self.export_error:
            raise self.export_error
        Path(dest).write_bytes(self.exported_bytes)
        return Path(dest)


class FakeEditorClient(PlaceholderEditorClient):
    """Editor client that records substitutions without touching the file."""

    def __init__(self, api_key="key", error=None):
        super().__init__(EditorServiceConfig(api_key=api_key))
        self.error = error
        self.replacements = []

    def replace_all(self, path, match, replacement):
        if self.error:
            raise self.error
        self.replacements.append((match, replacement))


@pytest.fixture
def orchestrator(config):
    def build(llm=None, design=None, editor=None, event_log=None):
        return GenerationOrchestrator(
            config,
            llm=llm,
            design_client=design or FakeDesignClient(configured=False),
            editor_client=editor or FakeEditorClient(api_key=None),
            event_log=event_log,
        )
    return build


class TestPrompts:
    """Tests for prompt construction."""

    def test_content_prompt_fields(self, request_10):
        """Test the content prompt carries the form fields."""
        prompt = build_content_prompt(request_10)
        assert "Digital Transformation Strategy" in prompt
        assert "Executive team" in prompt
        assert "10" in prompt

    def test_outline_prompt_asks_for_json(self, request_10):
        """Test the outline prompt asks for JSON."""
        assert "JSON" in build_outline_prompt(request_10)


class TestContentPath:
    """Tests for the topic → deck path."""

    def test_demo_without_llm(self, orchestrator, request_10):
        """Test demo content when no backend is configured."""
        result = orchestrator().generate(request_10)
        assert result.demo_mode
        assert result.model is None
        assert result.headers["X-Generation-Mode"] == "demo"
        assert count_slides(result.path) == result.slide_count == 8
        assert result.filename.startswith("ai-presentation-")
        assert result.filename.endswith(".pptx")

    def test_ai_content(self, orchestrator, request_10, sample_text):
        """Test model text is normalized into the deck."""
        llm = ScriptedLLM({}, default=sample_text)
        result = orchestrator(llm=llm).generate(request_10)
        assert not result.demo_mode
        assert result.model == "gpt-4"
        assert result.headers["X-Generation-Model"] == "gpt-4"
        texts = slide_texts(result.path)
        assert any("Market Landscape" in t for t in texts)
        assert "Generated with gpt-4" in texts[0]

    def test_fallback_to_next_model(self, orchestrator, request_10, sample_text):
        """Test a failing model hands over to the next one."""
        llm = ScriptedLLM({"gpt-4": UpstreamUnavailable("model not found")}, default=sample_text)
        result = orchestrator(llm=llm).generate(request_10)
        assert result.model == "gpt-4o-mini"
        assert llm.calls == ["gpt-4", "gpt-4o-mini"]
        assert result.trace.attempts == [{"model": "gpt-4", "error": "model not found"}]

    def test_all_models_fail_gives_demo(self, orchestrator, request_10):
        """Test an exhausted model chain still returns the demo deck."""
        boom = UpstreamUnavailable("down")
        llm = ScriptedLLM({"gpt-4": boom, "gpt-4o-mini": boom, "gpt-3.5-turbo": boom})
        result = orchestrator(llm=llm).generate(request_10)
        assert result.demo_mode
        assert len(result.trace.attempts) == 3
        assert result.trace.state == GenerationState.STREAMING
        assert count_slides(result.path) == 8

    def test_auth_error_aborts(self, orchestrator, request_10):
        """Test rejected credentials stop the chain and surface."""
        llm = ScriptedLLM({"gpt-4": UpstreamAuthError("bad key")})
        with pytest.raises(UpstreamAuthError):
            orchestrator(llm=llm).generate(request_10)
        assert llm.calls == ["gpt-4"]

    def test_rate_limit_aborts(self, orchestrator, request_10):
        """Test throttling stops the chain and surfaces."""
        llm = ScriptedLLM({"gpt-4": UpstreamRateLimitError("slow down")})
        with pytest.raises(UpstreamRateLimitError):
            orchestrator(llm=llm).generate(request_10)

    def test_state_sequence(self, orchestrator, request_10):
        """Test the visited states in order."""
        result = orchestrator().generate(request_10)
        assert [s.value for s in result.trace.states] == [
            "received", "sourcing_text", "normalizing", "laying_out", "serializing", "streaming",
        ]

    def test_unique_output_paths(self, orchestrator, request_10):
        """Test concurrent requests never share a file."""
        orch = orchestrator()
        paths = {orch.generate(request_10).path for _ in range(3)}
        assert len(paths) == 3

    def test_event_log(self, orchestrator, request_10, temp_dir):
        """Test lifecycle events are written per request."""
        log = GenerationEventLog(temp_dir / "events")
        result = orchestrator(event_log=log).generate(request_10)
        events = log.read_events(result.trace.request_id)
        assert any(e["type"] == "demo_mode" for e in events)
        assert events[0]["data"]["request"]["topic"] == "Digital Transformation Strategy"

    def test_finish_logs_trace_summary(self, orchestrator, request_10, temp_dir):
        """Test the closed trace is written to the event log."""
        log = GenerationEventLog(temp_dir / "events")
        orch = orchestrator(event_log=log)
        result = orch.generate(request_10)
        orch.finish(result)
        summary = [e for e in log.read_events(result.trace.request_id) if e["type"] == "trace"]
        assert len(summary) == 1
        assert summary[0]["data"]["path"] == "content"
        assert summary[0]["data"]["states"][0] == "received"
        assert summary[0]["data"]["states"][-1] == "done"


class TestOutlinePath:
    """Tests for caller-supplied outlines."""

    def test_outline_deck(self, orchestrator):
        """Test an outline renders without a model."""
        outline = Outline.from_dict(json.loads(OUTLINE_JSON))
        result = orchestrator().generate_from_outline(outline, "ai-tech")
        texts = slide_texts(result.path)
        assert count_slides(result.path) == 5
        assert "Cloud Migration" in texts[0]
        assert result.filename.startswith("presentation-")

    def test_untitled_outline(self, orchestrator):
        """Test the default title for an untitled outline."""
        outline = Outline.from_dict({"slides": [{"title": "Only", "content": ["One"]}]})
        result = orchestrator().generate_from_outline(outline)
        assert "AI Generated Presentation" in slide_texts(result.path)[0]


class TestDesignPath:
    """Tests for the design-service path."""

    def test_unconfigured_uses_local_deck(self, orchestrator, request_10):
        """Test the local stand-in deck when the service is not configured."""
        result = orchestrator().generate_with_design_service(request_10)
        assert result.demo_mode
        assert count_slides(result.path) == 1
        assert result.filename.startswith("canva-presentation-")

    def test_export(self, orchestrator, request_10, temp_dir):
        """Test the exported bytes are streamed as-is."""
        design = FakeDesignClient()
        design.exported_bytes = b"PPTX-BYTES"
        llm = ScriptedLLM({}, default=OUTLINE_JSON)
        result = orchestrator(llm=llm, design=design).generate_with_design_service(request_10)
        assert not result.demo_mode
        assert result.path.read_bytes() == b"PPTX-BYTES"
        outline, template = design.created[0]
        assert outline.title == "Cloud Migration"
        assert result.model == "gpt-4"

    def test_demo_handle_uses_local_deck(self, orchestrator, request_10):
        """Test a demo handle from the service falls back locally."""
        design = FakeDesignClient(handle_id="demo-123")
        result = orchestrator(design=design).generate_with_design_service(request_10)
        assert result.demo_mode
        assert count_slides(result.path) == 1
        assert design.created[0][0].title == "Digital Transformation Strategy"

    def test_export_failure_uses_local_deck(self, orchestrator, request_10):
        """Test an export failure falls back locally."""
        design = FakeDesignClient(export_error=UpstreamUnavailable("export failed"))
        result = orchestrator(design=design).generate_with_design_service(request_10)
        assert result.demo_mode
        assert count_slides(result.path) == 1

    def test_model_auth_error_degrades(self, orchestrator, request_10):
        """Test a model credential failure degrades to the demo outline."""
        llm = ScriptedLLM({"gpt-4": UpstreamAuthError("bad key")})
        result = orchestrator(llm=llm).generate_with_design_service(request_10)
        assert result.model is None
        assert result.demo_mode


class TestTemplatePath:
    """Tests for template-and-substitute."""

    def test_requires_llm(self, orchestrator, request_10):
        """Test the missing model key is reported."""
        with pytest.raises(ConfigurationError) as exc_info:
            orchestrator(editor=FakeEditorClient()).build_from_template(request_10)
        assert exc_info.value.error == "OpenAI API key not configured"
        assert exc_info.value.status_code == 400

    def test_requires_editor(self, orchestrator, request_10):
        """Test the missing editor key is reported."""
        llm = ScriptedLLM({}, default=OUTLINE_JSON)
        with pytest.raises(ConfigurationError) as exc_info:
            orchestrator(llm=llm).build_from_template(request_10)
        assert exc_info.value.error == "Cloudmersive API key not configured"

    def test_substitutions(self, orchestrator, request_10):
        """Test every token is sent to the editor."""
        editor = FakeEditorClient()
        llm = ScriptedLLM({}, default=OUTLINE_JSON)
        result = orchestrator(llm=llm, editor=editor).build_from_template(request_10)
        sent = dict(editor.replacements)
        assert sent["{{TITLE}}"] == "Cloud Migration"
        assert sent["{{S2_TITLE}}"] == "Why migrate"
        # title + agenda + 2 content + conclusion → 4 slots
        assert count_slides(result.path) == 5
        assert "{{S1_TITLE}}" in slide_texts(result.path)[1]

    def test_editor_failure_removes_file(self, orchestrator, request_10, config):
        """Test a failed substitution is fatal and leaves no file."""
        editor = FakeEditorClient(error=UpstreamUnavailable("editor down"))
        llm = ScriptedLLM({}, default=OUTLINE_JSON)
        with pytest.raises(UpstreamUnavailable):
            orchestrator(llm=llm, editor=editor).build_from_template(request_10)
        assert list(Path(config.server.output_dir).glob("*.pptx")) == []


class TestCleanup:
    """Tests for file lifecycle."""

    def test_finish_deletes_file(self, orchestrator, request_10):
        """Test the post-response hook deletes the file and closes the trace."""
        orch = orchestrator()
        result = orch.generate(request_10)
        assert result.path.exists()
        orch.finish(result)
        assert not result.path.exists()
        assert result.trace.state == GenerationState.DONE

    def test_cleanup_missing_file(self, orchestrator, temp_dir):
        """Test cleanup of a missing file is not an error."""
        assert orchestrator().cleanup(temp_dir / "missing.pptx") is False

    def test_sweep_stale_files(self, orchestrator, config):
        """Test only files older than the threshold are swept."""
        out = Path(config.server.output_dir)
        out.mkdir(parents=True)
        old, fresh = out / "old.pptx", out / "fresh.pptx"
        old.write_bytes(b"x")
        fresh.write_bytes(b"x")
        past = time.time() - 3600
        os.utime(old, (past, past))
        assert orchestrator().sweep_stale_files(max_age=300) == 1
        assert not old.exists()
        assert fresh.exists()

    def test_sweep_without_directory(self, orchestrator):
        """Test sweeping before any output exists."""
        assert orchestrator().sweep_stale_files() == 0

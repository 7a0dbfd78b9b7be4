"""
Generation Orchestrator - request → .pptx on disk

Drives one generation request through its states:

    RECEIVED → SOURCING_TEXT → NORMALIZING → LAYING_OUT → SERIALIZING → STREAMING → DONE
                                 (ERRORED reachable from any state)

Only SOURCING_TEXT retries: the configured model preference list is consumed
by a FallbackChain whose classifier aborts on credential / quota errors and
moves on for anything else. When no model is configured or every model
failed, the canned demo deck is served instead of an error.

Four entry points share this machinery:

    generate()                      content path (LLM text → layout → pptx)
    generate_from_outline()         caller-supplied structured outline
    generate_with_design_service()  design-template service, local fallback deck
    build_from_template()           placeholder template + external substitution

The orchestrator writes one uniquely named file per request under the output
directory; ``finish()`` (scheduled after the response is sent) deletes it and
``sweep_stale_files()`` removes anything an aborted client left behind.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from slideforge_core.collaborators import DesignServiceClient, PlaceholderEditorClient
from slideforge_core.config import SlideForgeConfig
from slideforge_core.deck.demo_content import demo_records, design_demo_outline, professional_subtitle
from slideforge_core.deck.layout import layout
from slideforge_core.deck.models import (
    DeckMetadata,
    GenerationRequest,
    Outline,
    SlideKind,
    SlideRecord,
)
from slideforge_core.deck.normalize import normalize, normalize_outline, parse_structured
from slideforge_core.deck.serializer import (
    MAX_TEMPLATE_SLOTS,
    build_placeholder_template,
    minimal_demo_deck,
    placeholder_values,
    write_deck,
)
from slideforge_core.deck.themes import resolve_theme
from slideforge_core.errors import (
    ConfigurationError,
    FilesystemError,
    SlideForgeError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamUnavailable,
)
from slideforge_core.llm_backends import BaseLLM, classify_llm_failure, create_backend_from_config
from slideforge_core.logging_utils import GenerationEventLog, LogLevel
from slideforge_core.resilience import ChainExhausted, FallbackChain
from slideforge_core.version import PRODUCER

logger = logging.getLogger(__name__)


# =============================================================================
# Prompts
# =============================================================================

SYSTEM_PROMPT = (
    "You are an expert PowerPoint presentation designer and creator. You have deep "
    "knowledge of professional presentation design, business communication, and visual "
    "storytelling. Create engaging, well-structured presentations that follow industry "
    "best practices."
)

OUTLINE_SYSTEM_PROMPT = (
    "You are an expert PowerPoint presentation designer. Create engaging, professional "
    "content that follows best practices."
)


def _requirements(request: GenerationRequest) -> str:
    return (
        f"Requirements:\n"
        f"- Target audience: {request.audience or 'General business audience'}\n"
        f"- Style: {request.style or 'Professional and modern'}\n"
        f"- Presentation type: {request.presentation_type or 'business'}\n"
        f"- Number of slides: {request.slides}\n"
        f"- Additional context: {request.additional_info or 'None'}\n"
    )


def build_content_prompt(request: GenerationRequest) -> str:
    """Free-text prompt for the content path."""
    return (
        f'Create a professional PowerPoint presentation for the topic: "{request.topic}".\n\n'
        f"{_requirements(request)}"
        f"- Template style: {request.theme or 'ai-modern'}\n\n"
        "Create a complete presentation with:\n"
        "1. Professional title slide with compelling title and subtitle\n"
        "2. Agenda/overview slide with clear structure\n"
        "3. Main content slides with detailed bullet points\n"
        "4. Conclusion slide with key takeaways\n\n"
        "Write each slide title on its own line ending with a colon, followed by its "
        "bullet points, one per line."
    )


def build_outline_prompt(request: GenerationRequest) -> str:
    """JSON-outline prompt for the design and template paths."""
    return (
        f'Create a professional PowerPoint presentation outline for: "{request.topic}"\n\n'
        f"{_requirements(request)}\n"
        "Please provide the content in this exact JSON format:\n"
        "{\n"
        '  "title": "Main presentation title",\n'
        '  "subtitle": "Subtitle or tagline",\n'
        '  "slides": [\n'
        '    {"title": "Slide Title", "content": ["Bullet point 1", "Bullet point 2"], "type": "content"}\n'
        "  ]\n"
        "}\n\n"
        "Make the content professional, engaging, and suitable for the target audience."
    )


# =============================================================================
# State machine
# =============================================================================

class GenerationState(str, Enum):
    """Per-request generation state."""
    RECEIVED = "received"
    SOURCING_TEXT = "sourcing_text"
    NORMALIZING = "normalizing"
    LAYING_OUT = "laying_out"
    SERIALIZING = "serializing"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"


@dataclass
class GenerationTrace:
    """States visited by one request, plus model attempts and the final error."""
    request_id: str
    path: str = "content"
    states: List[GenerationState] = field(default_factory=lambda: [GenerationState.RECEIVED])
    attempts: List[Dict[str, str]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def state(self) -> GenerationState:
        return self.states[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "path": self.path,
            "states": [s.value for s in self.states],
            "attempts": list(self.attempts),
            "error": self.error,
        }


@dataclass
class GenerationResult:
    """A generated deck waiting to be streamed."""
    path: Path
    filename: str
    trace: GenerationTrace
    model: Optional[str] = None
    demo_mode: bool = False
    slide_count: int = 0

    @property
    def headers(self) -> Dict[str, str]:
        h = {"X-Generation-Mode": "demo" if self.demo_mode else "ai"}
        if self.model:
            h["X-Generation-Model"] = self.model
        return h


def _millis() -> int:
    return int(time.time() * 1000)


# =============================================================================
# Orchestrator
# =============================================================================

class GenerationOrchestrator:
    """
    Request-scoped pipeline over injected collaborators.

    Collaborators are constructed once at startup (see ``from_config``) and
    shared by all requests; the orchestrator holds no per-request state.
    """

    def __init__(
        self,
        config: SlideForgeConfig,
        llm: Optional[BaseLLM] = None,
        design_client: Optional[DesignServiceClient] = None,
        editor_client: Optional[PlaceholderEditorClient] = None,
        event_log: Optional[GenerationEventLog] = None,
    ):
        self.config = config
        self.llm = llm
        self.design_client = design_client or DesignServiceClient(config.design_service)
        self.editor_client = editor_client or PlaceholderEditorClient(config.editor_service)
        self.event_log = event_log
        self.output_dir = Path(config.server.output_dir)

    @classmethod
    def from_config(cls, config: SlideForgeConfig) -> "GenerationOrchestrator":
        """Build the orchestrator and its collaborators from configuration."""
        event_log = None
        if config.logging.event_log:
            event_log = GenerationEventLog(Path(config.logging.log_dir))
        return cls(
            config,
            llm=create_backend_from_config(config.llm),
            design_client=DesignServiceClient(config.design_service),
            editor_client=PlaceholderEditorClient(config.editor_service),
            event_log=event_log,
        )

    @property
    def ai_available(self) -> bool:
        return self.llm is not None

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    def _new_trace(self, path: str, request: Optional[GenerationRequest] = None) -> GenerationTrace:
        trace = GenerationTrace(request_id=uuid.uuid4().hex[:12], path=path)
        data: Dict[str, Any] = {"state": GenerationState.RECEIVED.value}
        if request is not None:
            data["request"] = request.to_dict()
        self._emit(trace, "state", data)
        return trace

    def _emit(self, trace: GenerationTrace, event_type: str, data: Dict[str, Any],
              level: LogLevel = LogLevel.INFO) -> None:
        if self.event_log is not None:
            self.event_log.log_event(trace.request_id, event_type, data, level)

    def _transition(self, trace: GenerationTrace, state: GenerationState) -> None:
        trace.states.append(state)
        logger.debug(f"[{trace.request_id}] → {state.value}")
        self._emit(trace, "state", {"state": state.value})

    def _fail(self, trace: GenerationTrace, exc: Exception) -> None:
        trace.error = str(exc)
        trace.states.append(GenerationState.ERRORED)
        logger.error(f"[{trace.request_id}] {trace.path} generation failed: {exc}")
        self._emit(trace, "error", {"error": str(exc), "type": type(exc).__name__}, LogLevel.ERROR)

    def _output_path(self, prefix: str) -> Path:
        """Unique output file: {prefix}-{timestamp}-{hex8}.pptx"""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create output directory {self.output_dir}: {e}") from e
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        return self.output_dir / f"{prefix}-{stamp}-{uuid.uuid4().hex[:8]}.pptx"

    def _metadata(self, records: List[SlideRecord], request: GenerationRequest) -> DeckMetadata:
        title_rec = next((r for r in records if r.kind == SlideKind.TITLE), None)
        title = title_rec.title if title_rec else request.topic
        subject = title_rec.content[0] if title_rec and title_rec.content else professional_subtitle(request)
        keywords = tuple(k for k in (request.presentation_type, request.audience, request.style) if k)
        return DeckMetadata(
            title=title,
            subject=subject,
            author=self.config.deck.author,
            company=self.config.deck.company,
            producer=PRODUCER,
            keywords=keywords,
        )

    # -------------------------------------------------------------------------
    # Sourcing
    # -------------------------------------------------------------------------

    def source_text(
        self,
        request: GenerationRequest,
        trace: GenerationTrace,
        structured: bool = False,
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Ask the configured models, in preference order, for source text.

        Returns:
            (text, model) from the first model that answered, or (None, None)
            when no backend is configured or every model failed

        Raises:
            UpstreamAuthError: credentials rejected (chain aborted)
            UpstreamRateLimitError: throttled (chain aborted)
        """
        if self.llm is None:
            logger.info(f"[{trace.request_id}] No LLM configured, using demo content")
            self._emit(trace, "demo_mode", {"reason": "no_credentials"})
            return None, None

        system = OUTLINE_SYSTEM_PROMPT if structured else SYSTEM_PROMPT
        prompt = build_outline_prompt(request) if structured else build_content_prompt(request)
        history = [{"role": "user", "content": prompt}]
        models = list(self.config.llm.models) or [self.llm.model]

        def on_fallback(model: str, exc: Exception) -> None:
            logger.warning(f"[{trace.request_id}] Model {model} failed, trying next: {exc}")
            self._emit(trace, "fallback", {"model": model, "error": str(exc)}, LogLevel.WARNING)

        chain = FallbackChain(
            operations=[(m, partial(self.llm.for_model(m).generate, system, history)) for m in models],
            classifier=classify_llm_failure,
            on_fallback=on_fallback,
        )
        try:
            model, text = chain.execute()
        except ChainExhausted as e:
            logger.warning(f"[{trace.request_id}] All models failed, using demo content: {e}")
            self._emit(trace, "demo_mode", {"reason": "all_models_failed"}, LogLevel.WARNING)
            return None, None
        finally:
            trace.attempts.extend({"model": a.label, "error": str(a.error)} for a in chain.attempts)

        logger.info(f"[{trace.request_id}] Text generated with {model}")
        self._emit(trace, "model", {"model": model, "chars": len(text)})
        return text, model

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render(
        self,
        records: List[SlideRecord],
        request: GenerationRequest,
        trace: GenerationTrace,
        prefix: str,
        model: Optional[str] = None,
    ) -> Path:
        self._transition(trace, GenerationState.LAYING_OUT)
        theme = resolve_theme(request.theme or self.config.deck.default_theme, request.style)
        metadata = self._metadata(records, request)
        pages = layout(records, theme, deck_title=metadata.title, model=model)

        self._transition(trace, GenerationState.SERIALIZING)
        path = write_deck(pages, metadata, self._output_path(prefix))
        logger.info(f"[{trace.request_id}] Wrote {len(pages)} slides ({theme.key}) to {path.name}")
        return path

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Content path: model text (or demo content) → normalized deck."""
        trace = self._new_trace("content", request)
        try:
            self._transition(trace, GenerationState.SOURCING_TEXT)
            text, model = self.source_text(request, trace)

            self._transition(trace, GenerationState.NORMALIZING)
            records = normalize(text, request) if text is not None else demo_records(request)

            path = self._render(records, request, trace, "ai-presentation", model)
            self._transition(trace, GenerationState.STREAMING)
        except Exception as e:
            self._fail(trace, e)
            raise

        return GenerationResult(
            path=path,
            filename=f"ai-presentation-{_millis()}.pptx",
            trace=trace,
            model=model,
            demo_mode=text is None,
            slide_count=len(records),
        )

    def generate_from_outline(self, outline: Outline, theme_id: str = "") -> GenerationResult:
        """Outline path: render a caller-supplied outline, no model call."""
        trace = self._new_trace("outline")
        request = GenerationRequest(
            topic=outline.title or "AI Generated Presentation",
            slides=self.config.deck.max_slides,
            theme=theme_id or "",
        )
        try:
            self._transition(trace, GenerationState.NORMALIZING)
            records = normalize_outline(outline, request)
            path = self._render(records, request, trace, "presentation")
            self._transition(trace, GenerationState.STREAMING)
        except Exception as e:
            self._fail(trace, e)
            raise

        return GenerationResult(
            path=path,
            filename=f"presentation-{_millis()}.pptx",
            trace=trace,
            slide_count=len(records),
        )

    def generate_with_design_service(self, request: GenerationRequest) -> GenerationResult:
        """
        Design-service path.

        The outline comes from the model (JSON prompt) or the demo outline;
        any model failure degrades to the demo outline. The service builds and
        exports the deck; a local minimal deck replaces it when the service is
        not configured or fails for a reason other than rejected credentials.
        """
        trace = self._new_trace("design", request)
        model = None
        try:
            self._transition(trace, GenerationState.SOURCING_TEXT)
            try:
                text, model = self.source_text(request, trace, structured=True)
            except (UpstreamAuthError, UpstreamRateLimitError) as e:
                logger.warning(f"[{trace.request_id}] Outline generation failed, using demo outline: {e}")
                text, model = None, None

            self._transition(trace, GenerationState.NORMALIZING)
            outline = parse_structured(text) if text else None
            if outline is None:
                outline = design_demo_outline(request)
                model = None

            path = self._output_path("canva-presentation")
            exported = False
            if self.design_client.configured:
                handle = self.design_client.create_presentation(outline, request.theme or "business")
                presentation_id = str(handle.get("id", ""))
                if presentation_id and not presentation_id.startswith("demo-"):
                    self._transition(trace, GenerationState.SERIALIZING)
                    try:
                        self.design_client.export_pptx(presentation_id, path)
                        exported = True
                    except (UpstreamUnavailable, UpstreamRateLimitError) as e:
                        logger.warning(f"[{trace.request_id}] Export failed, using local deck: {e}")

            if not exported:
                self._transition(trace, GenerationState.LAYING_OUT)
                pages = minimal_demo_deck()
                self._transition(trace, GenerationState.SERIALIZING)
                metadata = DeckMetadata(
                    title="Canva Demo Presentation",
                    subject=outline.subtitle,
                    author=self.config.deck.author,
                    company=self.config.deck.company,
                    producer=PRODUCER,
                )
                write_deck(pages, metadata, path)
            self._transition(trace, GenerationState.STREAMING)
        except Exception as e:
            self._fail(trace, e)
            raise

        return GenerationResult(
            path=path,
            filename=f"canva-presentation-{_millis()}.pptx",
            trace=trace,
            model=model,
            demo_mode=not exported,
        )

    def list_design_templates(self) -> List[Dict[str, Any]]:
        return self.design_client.list_templates()

    def build_from_template(self, request: GenerationRequest) -> GenerationResult:
        """
        Template-and-substitute path.

        Builds a deck of literal ``{{TOKEN}}`` placeholders, then has the
        editing service substitute every token. Requires both an LLM and the
        editing service; a substitution failure is fatal.

        Raises:
            ConfigurationError: LLM or editing service not configured
        """
        if self.llm is None:
            raise ConfigurationError(
                "Please add your OpenAI API key to the .env file to use the presentation builder.",
                suggestion="Add OPENAI_API_KEY=your-key-here to your .env file",
                error="OpenAI API key not configured",
            )
        if not self.editor_client.configured:
            raise ConfigurationError(
                "Please add your Cloudmersive API key to the .env file.",
                suggestion="Add CLOUDMERSIVE_API_KEY=your-key-here to your .env file",
                error="Cloudmersive API key not configured",
            )

        trace = self._new_trace("template", request)
        path = None
        try:
            self._transition(trace, GenerationState.SOURCING_TEXT)
            text, model = self.source_text(request, trace, structured=True)

            self._transition(trace, GenerationState.NORMALIZING)
            records = normalize(text, request) if text is not None else demo_records(request)
            values = placeholder_values(records)

            self._transition(trace, GenerationState.LAYING_OUT)
            theme = resolve_theme(request.theme or self.config.deck.default_theme, request.style)
            metadata = self._metadata(records, request)
            slot_count = min(len(records) - 1, MAX_TEMPLATE_SLOTS)
            pages = build_placeholder_template(slot_count, theme, metadata)

            self._transition(trace, GenerationState.SERIALIZING)
            path = write_deck(pages, metadata, self._output_path("presentation"))
            applied = self.editor_client.substitute(path, values)
            logger.info(f"[{trace.request_id}] Substituted {applied} placeholders in {path.name}")
            self._transition(trace, GenerationState.STREAMING)
        except Exception as e:
            self._fail(trace, e)
            if path is not None:
                self.cleanup(path)
            raise

        return GenerationResult(
            path=path,
            filename=f"presentation-{_millis()}.pptx",
            trace=trace,
            model=model,
            demo_mode=text is None,
            slide_count=len(pages),
        )

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------

    def cleanup(self, path: Path) -> bool:
        """Delete a generated file. Failures are logged, never raised."""
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Cleanup failed for {path}: {e}")
            return False

    def finish(self, result: GenerationResult) -> None:
        """Post-response hook: delete the request's file and close its trace."""
        self.cleanup(result.path)
        if result.trace.state != GenerationState.DONE:
            self._transition(result.trace, GenerationState.DONE)
        self._emit(result.trace, "trace", result.trace.to_dict())

    def sweep_stale_files(self, max_age: Optional[float] = None) -> int:
        """Delete output files older than ``max_age`` seconds; returns the count."""
        max_age = self.config.server.stale_file_seconds if max_age is None else max_age
        if not self.output_dir.is_dir():
            return 0
        cutoff = time.time() - max_age
        removed = 0
        for p in self.output_dir.glob("*.pptx"):
            try:
                if p.stat().st_mtime < cutoff and self.cleanup(p):
                    removed += 1
            except OSError as e:
                logger.warning(f"Cannot inspect {p}: {e}")
        if removed:
            logger.info(f"Swept {removed} stale file(s) from {self.output_dir}")
        return removed

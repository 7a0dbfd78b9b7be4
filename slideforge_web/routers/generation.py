"""
SlideForge Generation Router - deck generation endpoints

    POST /api/generate-content        topic form → AI (or demo) deck
    POST /api/generate-presentation   structured outline → deck
    POST /api/build-presentation      placeholder template + substitution service
    GET  /api/themes                  theme picker data

Handlers are plain ``def``: FastAPI runs them in its threadpool, so the
blocking model call and serialization never stall the event loop.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from slideforge_core.deck.models import GenerationRequest, Outline
from slideforge_core.deck.themes import list_themes
from slideforge_core.errors import ValidationError
from slideforge_core.orchestrator import GenerationOrchestrator, GenerationResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generation"])

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# Reference to the orchestrator built at startup
_orchestrator: Optional[GenerationOrchestrator] = None


def set_orchestrator(orchestrator: GenerationOrchestrator):
    """Set the orchestrator reference from server.py"""
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator() -> GenerationOrchestrator:
    if _orchestrator is None:
        raise HTTPException(status_code=500, detail="Generation service not initialized")
    return _orchestrator


# Request models
class PresentationForm(BaseModel):
    """Form fields shared by the topic-driven endpoints."""
    topic: Optional[str] = None
    audience: Optional[str] = None
    style: Optional[str] = None
    slides: Optional[Union[int, float, str]] = None     # clamped by GenerationRequest
    additionalInfo: Optional[str] = None
    presentationType: Optional[str] = None
    theme: Optional[str] = None
    template: Optional[str] = None
    aiModel: Optional[str] = None        # accepted for compatibility, ignored


class OutlineRequest(BaseModel):
    """Body of /api/generate-presentation."""
    presentationData: Optional[Dict[str, Any]] = None
    template: Optional[str] = None


def to_generation_request(form: PresentationForm, orchestrator: GenerationOrchestrator) -> GenerationRequest:
    """Validate the form against the configured slide bounds."""
    deck = orchestrator.config.deck
    return GenerationRequest.from_payload(
        form.model_dump(),
        min_slides=deck.min_slides,
        max_slides=deck.max_slides,
        default_slides=deck.default_slides,
    )


def deck_response(orchestrator: GenerationOrchestrator, result: GenerationResult) -> FileResponse:
    """Stream the deck; the file is deleted once the response has been sent."""
    return FileResponse(
        path=str(result.path),
        filename=result.filename,
        media_type=PPTX_MEDIA_TYPE,
        headers=result.headers,
        background=BackgroundTask(orchestrator.finish, result),
    )


@router.get("/themes")
def get_themes(legacy: bool = False):
    """Theme summaries for the picker."""
    return {"themes": list_themes(include_legacy=legacy)}


@router.post("/generate-content")
def generate_content(form: PresentationForm):
    """
    Generate a deck from the topic form.

    Without a configured model, or when every model fails, the demo deck is
    returned with ``X-Generation-Mode: demo``.
    """
    orchestrator = get_orchestrator()
    orchestrator.sweep_stale_files()
    request = to_generation_request(form, orchestrator)
    logger.info(f"Generating presentation for topic: {request.topic!r} ({request.slides} slides)")
    result = orchestrator.generate(request)
    return deck_response(orchestrator, result)


@router.post("/generate-presentation")
def generate_presentation(body: OutlineRequest):
    """Render a caller-supplied outline ``{title, subtitle, slides: [...]}``."""
    if body.presentationData is None:
        raise ValidationError(error="Presentation data is required",
                              suggestion="Send presentationData with title and slides.")
    outline = Outline.from_dict(body.presentationData)

    orchestrator = get_orchestrator()
    orchestrator.sweep_stale_files()
    result = orchestrator.generate_from_outline(outline, body.template)
    return deck_response(orchestrator, result)


@router.post("/build-presentation")
def build_presentation(form: PresentationForm):
    """Placeholder template filled by the substitution service."""
    orchestrator = get_orchestrator()
    orchestrator.sweep_stale_files()
    request = to_generation_request(form, orchestrator)
    logger.info(f"Starting presentation builder workflow for topic: {request.topic!r}")
    result = orchestrator.build_from_template(request)
    return deck_response(orchestrator, result)

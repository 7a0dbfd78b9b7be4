"""
SlideForge Design Router - design-template service endpoints

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException

from slideforge_core.orchestrator import GenerationOrchestrator

from .generation import PresentationForm, deck_response, to_generation_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/canva", tags=["design"])

_orchestrator: Optional[GenerationOrchestrator] = None


def set_orchestrator(orchestrator: GenerationOrchestrator):
    """Set the orchestrator reference from server.py"""
    global _orchestrator
    _orchestrator = orchestrator


def _get() -> GenerationOrchestrator:
    if _orchestrator is None:
        raise HTTPException(status_code=500, detail="Design service not initialized")
    return _orchestrator


@router.post("/generate-presentation")
def generate_design_presentation(form: PresentationForm):
    """Deck built and exported by the design service (local demo deck on failure)."""
    orchestrator = _get()
    orchestrator.sweep_stale_files()
    request = to_generation_request(form, orchestrator)
    logger.info(f"Starting design-service presentation for topic: {request.topic!r}")
    result = orchestrator.generate_with_design_service(request)
    return deck_response(orchestrator, result)


@router.get("/templates")
def get_design_templates():
    """Presentation templates offered by the design service."""
    return {"templates": _get().list_design_templates()}

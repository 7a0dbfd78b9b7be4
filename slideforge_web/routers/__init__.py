"""
SlideForge Web Routers - Modular API endpoints

    generation_router: content, outline and template-and-substitute paths, themes
    design_router: design-template service path

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from .generation import router as generation_router, set_orchestrator as set_generation_orchestrator
from .design import router as design_router, set_orchestrator as set_design_orchestrator

__all__ = [
    "generation_router",
    "design_router",
    "set_generation_orchestrator",
    "set_design_orchestrator",
]

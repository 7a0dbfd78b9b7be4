"""
Canned content: fallback agenda, fallback slides, the fixed conclusion and
the demo decks served when no text-generation collaborator is available.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

from typing import List

from slideforge_core.deck.models import (
    GenerationRequest,
    IconKind,
    Outline,
    OutlineSlide,
    SlideKind,
    SlideRecord,
)

FALLBACK_AGENDA = (
    "Introduction and Overview",
    "Key Challenges and Opportunities",
    "Strategic Approach and Solutions",
    "Implementation Roadmap",
    "Expected Outcomes and Benefits",
    "Next Steps and Recommendations",
)

FALLBACK_CONTENT = (
    SlideRecord(
        title="Introduction and Overview",
        content=(
            "Current market landscape and trends",
            "Key challenges facing the industry",
            "Opportunities for growth and innovation",
            "Strategic importance of this initiative",
        ),
        icon=IconKind.IDEA,
    ),
    SlideRecord(
        title="Key Challenges and Opportunities",
        content=(
            "Market competition and disruption",
            "Technology adoption barriers",
            "Resource constraints and limitations",
            "Regulatory and compliance requirements",
        ),
        icon=IconKind.TARGET,
    ),
)

# Demo deck = the two fallback slides followed by these
DEMO_EXTRA_CONTENT = (
    SlideRecord(
        title="Strategic Approach and Solutions",
        content=(
            "Comprehensive analysis and planning",
            "Innovative technology solutions",
            "Process optimization and automation",
            "Change management and training",
        ),
        icon=IconKind.IDEA,
    ),
    SlideRecord(
        title="Implementation Roadmap",
        content=(
            "Phase 1: Foundation and Setup (Months 1-3)",
            "Phase 2: Core Development (Months 4-6)",
            "Phase 3: Testing and Refinement (Months 7-9)",
            "Phase 4: Launch and Optimization (Months 10-12)",
        ),
        icon=IconKind.DEFAULT,
    ),
    SlideRecord(
        title="Expected Outcomes and Benefits",
        content=(
            "Increased efficiency and productivity",
            "Cost reduction and resource optimization",
            "Enhanced customer satisfaction",
            "Competitive advantage and market position",
        ),
        icon=IconKind.CHART,
    ),
)

CONCLUSION_TITLE = "Next Steps and Recommendations"
CONCLUSION_CONTENT = (
    "Immediate action items and priorities",
    "Resource allocation and budget planning",
    "Stakeholder engagement and communication",
    "Success metrics and monitoring framework",
)

DEMO_MESSAGE = (
    "This is demo content generated without AI. "
    "Add your OpenAI API key to enable AI-powered content generation."
)


def conclusion_record() -> SlideRecord:
    return SlideRecord(
        title=CONCLUSION_TITLE,
        content=CONCLUSION_CONTENT,
        kind=SlideKind.CONCLUSION,
        icon=IconKind.CHECK,
    )


def agenda_record(items) -> SlideRecord:
    return SlideRecord(title="Agenda", content=tuple(items), kind=SlideKind.AGENDA, icon=IconKind.LIST)


def professional_subtitle(request: GenerationRequest) -> str:
    return f"Professional {request.type_label} Presentation"


def demo_subtitle(request: GenerationRequest) -> str:
    return f"AI-Generated {request.type_label} Presentation"


def demo_records(request: GenerationRequest) -> List[SlideRecord]:
    """
    Canned deck used when no model is configured or every model failed.

    Title, fallback agenda, up to ``min(5, slides - 3)`` content slides and
    the fixed conclusion.
    """
    content = (FALLBACK_CONTENT + DEMO_EXTRA_CONTENT)[: min(5, request.content_budget)]
    return [
        SlideRecord(
            title=request.topic or "Professional Presentation",
            content=(demo_subtitle(request),),
            kind=SlideKind.TITLE,
            icon=IconKind.DEFAULT,
        ),
        agenda_record(FALLBACK_AGENDA),
        *content,
        conclusion_record(),
    ]


_DESIGN_DEMO_SLIDES = (
    ("Introduction", ("Welcome and overview", "Key objectives for today",
                      "What we will cover", "Expected outcomes")),
    ("Current Situation", ("Market analysis and trends", "Current challenges and opportunities",
                           "Competitive landscape", "Industry insights")),
    ("Strategic Approach", ("Our methodology and framework", "Key strategies and initiatives",
                            "Innovation and technology focus", "Risk management approach")),
    ("Implementation Plan", ("Phase 1: Foundation (Months 1-3)", "Phase 2: Development (Months 4-6)",
                             "Phase 3: Testing (Months 7-9)", "Phase 4: Launch (Months 10-12)")),
    ("Expected Results", ("Quantifiable benefits and metrics", "Efficiency improvements",
                          "Cost savings and ROI", "Competitive advantages")),
    ("Next Steps", ("Immediate action items", "Resource requirements",
                    "Timeline and milestones", "Success criteria")),
)


def design_demo_outline(request: GenerationRequest) -> Outline:
    """Demo outline handed to the design service (at most 8 slides requested)."""
    count = min(request.slides, 8)
    return Outline(
        title=request.topic or "Professional Presentation",
        subtitle=demo_subtitle(request),
        slides=tuple(
            OutlineSlide(title=title, content=content)
            for title, content in _DESIGN_DEMO_SLIDES[:count]
        ),
    )

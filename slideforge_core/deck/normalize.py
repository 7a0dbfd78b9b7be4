"""
Content Normalizer - generated text → canonical SlideRecord sequence.

Two input shapes:

(a) structured: a JSON object ``{title, subtitle, slides: [{title, content}]}``,
    found anywhere in the text (model output often wraps it in prose or code
    fences). Malformed structure falls back to (b).
(b) unstructured: free-form lines. Agenda items are picked by keyword, slide
    titles by line shape, and body lines accumulate under the open title.

Both paths produce: title record, agenda record, content records (at most
``slides - 3``), conclusion record. Pure functions, no I/O.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

from slideforge_core.deck.demo_content import (
    FALLBACK_AGENDA,
    FALLBACK_CONTENT,
    agenda_record,
    conclusion_record,
    professional_subtitle,
)
from slideforge_core.deck.models import (
    GenerationRequest,
    IconKind,
    Outline,
    SlideKind,
    SlideRecord,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

AGENDA_KEYWORDS = (
    "agenda", "overview", "introduction", "challenges",
    "solutions", "implementation", "conclusion", "next steps",
)
MAX_AGENDA_ITEMS = 6

_BULLET_PREFIX = re.compile(r"^[-*•\d\s]+")
_TITLE_SHAPE = re.compile(r"^[A-Z][^.!?]*$")
_JSON_SPAN = re.compile(r"\{[\s\S]*\}")

# Checked in order; first keyword hit wins
ICON_KEYWORDS = (
    (IconKind.CHART, ("data", "statistics", "chart")),
    (IconKind.PEOPLE, ("team", "people", "users")),
    (IconKind.TARGET, ("goal", "target", "objective")),
    (IconKind.IDEA, ("idea", "innovation", "creative")),
    (IconKind.CHECK, ("check", "complete", "done")),
    (IconKind.LIST, ("list", "agenda", "overview")),
)

# Icon names models and older clients send
ICON_ALIASES = {
    "lightbulb": IconKind.IDEA,
    "bulb": IconKind.IDEA,
    "users": IconKind.PEOPLE,
    "team": IconKind.PEOPLE,
    "check-circle": IconKind.CHECK,
    "trending-up": IconKind.CHART,
    "bar-chart": IconKind.CHART,
    "agenda": IconKind.LIST,
    "briefcase": IconKind.DEFAULT,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def infer_icon(title: str) -> IconKind:
    """Icon kind from keywords in a slide title."""
    lowered = title.lower()
    for kind, keywords in ICON_KEYWORDS:
        if any(k in lowered for k in keywords):
            return kind
    return IconKind.DEFAULT


def resolve_icon(name: str, title: str) -> IconKind:
    """Explicit icon name when recognized, else inferred from the title."""
    name = (name or "").strip().lower()
    if name:
        if name in ICON_ALIASES:
            return ICON_ALIASES[name]
        try:
            return IconKind(name)
        except ValueError:
            pass
    return infer_icon(title)


def is_title_candidate(line: str) -> bool:
    """A trimmed line that looks like a slide heading."""
    return 5 <= len(line) < 80 and (line.endswith(":") or bool(_TITLE_SHAPE.match(line)))


def fallback_line(title: str) -> str:
    return f"Key points about {title}"


def title_record(title: str, subtitle: str) -> SlideRecord:
    return SlideRecord(title=title, content=(subtitle,), kind=SlideKind.TITLE, icon=IconKind.DEFAULT)


# ---------------------------------------------------------------------------
# Unstructured path
# ---------------------------------------------------------------------------

def extract_agenda(raw_text: str) -> List[str]:
    """
    Agenda items by keyword; fixed fallback agenda when none found.

    The length window applies to the raw line, before bullet markup is removed.
    """
    items: List[str] = []
    for line in raw_text.split("\n"):
        if not 10 <= len(line) < 100:
            continue
        lowered = line.lower()
        if not any(k in lowered for k in AGENDA_KEYWORDS):
            continue
        item = _BULLET_PREFIX.sub("", line).strip()
        if item and item not in items:
            items.append(item)

    if not items:
        return list(FALLBACK_AGENDA)
    return items[:MAX_AGENDA_ITEMS]


def extract_content(raw_text: str, max_slides: int) -> List[SlideRecord]:
    """
    Content slides from free text, at most ``max_slides - 3``.

    A title candidate closes the open slide (if the budget allows) and opens a
    new one; lines longer than 10 characters accumulate under the open slide.
    """
    budget = max(max_slides - 3, 0)
    slides: List[SlideRecord] = []
    current_title: Optional[str] = None
    current_lines: List[str] = []

    def close():
        if current_title is None or len(slides) >= budget:
            return
        title = current_title or f"Slide {len(slides) + 3}"
        lines = current_lines or [fallback_line(title)]
        slides.append(SlideRecord(title=title, content=tuple(lines), icon=infer_icon(title)))

    for line in raw_text.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        if is_title_candidate(trimmed):
            close()
            current_title = trimmed.replace(":", "", 1).strip()
            current_lines = []
        elif current_title is not None and len(trimmed) > 10:
            current_lines.append(trimmed)
    close()

    if not slides:
        logger.debug("No content slides extracted, using fallback content")
        return list(FALLBACK_CONTENT[:budget])
    return slides[:budget]


def normalize_unstructured(raw_text: str, request: GenerationRequest) -> List[SlideRecord]:
    return [
        title_record(request.topic, professional_subtitle(request)),
        agenda_record(extract_agenda(raw_text)),
        *extract_content(raw_text, request.slides),
        conclusion_record(),
    ]


# ---------------------------------------------------------------------------
# Structured path
# ---------------------------------------------------------------------------

def parse_structured(raw_text: str) -> Optional[Outline]:
    """
    Parse the outermost ``{...}`` span as an outline.

    Returns None when there is no JSON object, it does not parse, or it has no
    usable ``slides`` list.
    """
    match = _JSON_SPAN.search(raw_text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError as e:
        logger.debug(f"Structured content did not parse: {e}")
        return None
    if not isinstance(data, dict):
        return None
    slides = data.get("slides")
    if not isinstance(slides, list) or not any(isinstance(s, dict) for s in slides):
        return None
    return Outline.from_dict(data)


def normalize_outline(outline: Outline, request: GenerationRequest) -> List[SlideRecord]:
    """
    Canonical records from a structured outline.

    Outline title slides fold into the title record; an agenda slide supplies
    the agenda; every other slide is content (within budget).
    """
    title = outline.title or request.topic
    subtitle = outline.subtitle
    agenda_items: List[str] = []
    contents: List[SlideRecord] = []

    for slide in outline.slides:
        if slide.type == "title":
            if not subtitle and slide.content:
                subtitle = slide.content[0]
            continue
        if slide.type == "agenda" or slide.title.lower() == "agenda":
            agenda_items = [c for c in slide.content if c.strip()]
            continue
        if len(contents) >= request.content_budget:
            continue
        slide_title = slide.title or f"Slide {len(contents) + 3}"
        lines = tuple(c for c in slide.content if c.strip()) or (fallback_line(slide_title),)
        contents.append(SlideRecord(
            title=slide_title,
            content=lines,
            icon=resolve_icon(slide.icon, slide_title),
        ))

    if not contents:
        contents = list(FALLBACK_CONTENT[:request.content_budget])

    if not agenda_items:
        for record in contents:
            if record.title not in agenda_items:
                agenda_items.append(record.title)
    agenda_items = agenda_items[:MAX_AGENDA_ITEMS] or list(FALLBACK_AGENDA)

    return [
        title_record(title, subtitle or professional_subtitle(request)),
        agenda_record(agenda_items),
        *contents,
        conclusion_record(),
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def normalize(raw_text: str, request: GenerationRequest) -> List[SlideRecord]:
    """
    Convert generated text into the canonical slide sequence.

    Args:
        raw_text: Model output (free text or text containing a JSON outline)
        request: Validated generation request (topic, slide budget, type)

    Returns:
        [title, agenda, content..., conclusion], length <= request.slides
    """
    outline = parse_structured(raw_text)
    if outline is not None:
        logger.debug(f"Structured outline with {len(outline.slides)} slides")
        return normalize_outline(outline, request)
    return normalize_unstructured(raw_text or "", request)

"""
Core data models for the SlideForge deck assembly engine.

All models are immutable dataclasses flowing left to right:

    raw text / outline → SlideRecord[] → PageDescriptor[] → .pptx bytes

Enums, frozen dataclasses and small helpers.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from slideforge_core.errors import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SlideKind(str, Enum):
    """Semantic kind of a slide record."""
    TITLE = "title"
    AGENDA = "agenda"
    CONTENT = "content"
    CONCLUSION = "conclusion"


class IconKind(str, Enum):
    """Fixed enumeration of synthesized icons."""
    CHART = "chart"
    PEOPLE = "people"
    IDEA = "idea"
    TARGET = "target"
    CHECK = "check"
    LIST = "list"
    DEFAULT = "default"     # briefcase


class ShapeKind(str, Enum):
    """Primitive vector shapes."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    LINE = "line"


class Align(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ListStyle(str, Enum):
    """Paragraph list styling of a text block."""
    NONE = "none"
    BULLET = "bullet"
    NUMBERED = "numbered"


class BackgroundKind(str, Enum):
    SOLID = "solid"
    GRADIENT = "gradient"


class LayoutVariant(str, Enum):
    """Content-region layout chosen for a non-title page."""
    TITLE = "title"
    AGENDA = "agenda"
    CONCLUSION = "conclusion"
    TWO_COLUMN = "two_column"
    SINGLE_COLUMN = "single_column"


# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Theme:
    """Named color/gradient role set applied uniformly across a deck."""
    key: str
    name: str
    primary: str
    secondary: str
    accent: str
    background: str
    text: str
    light_bg: str
    gradient: Tuple[str, str]
    accent_gradient: Tuple[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "primary": self.primary,
            "secondary": self.secondary,
            "accent": self.accent,
            "background": self.background,
            "text": self.text,
            "lightBg": self.light_bg,
            "gradient": list(self.gradient),
            "accentGradient": list(self.accent_gradient),
        }


# ---------------------------------------------------------------------------
# Slide records (normalizer output)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SlideRecord:
    """Canonical semantic content of one slide, before layout."""
    title: str
    content: Tuple[str, ...]
    kind: SlideKind = SlideKind.CONTENT
    icon: IconKind = IconKind.DEFAULT

    def __post_init__(self):
        # Normalize content: strings only, stripped, empties dropped
        cleaned = tuple(
            str(line).strip() for line in (self.content or ()) if line is not None and str(line).strip()
        )
        object.__setattr__(self, "content", cleaned)


# ---------------------------------------------------------------------------
# Page descriptors (layout output)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Background:
    """Solid color or 2-stop linear gradient."""
    kind: BackgroundKind
    colors: Tuple[str, ...]
    angle: float = 0.0

    @classmethod
    def solid(cls, color: str) -> Background:
        return cls(BackgroundKind.SOLID, (color,))

    @classmethod
    def linear(cls, stops: Sequence[str], angle: float = 0.0) -> Background:
        return cls(BackgroundKind.GRADIENT, (stops[0], stops[1]), angle)


@dataclass(frozen=True)
class PrimitiveShape:
    """
    Rectangle, circle or line in the 10 x 7.5 inch page space.

    ``gradient`` overrides ``fill`` with a 2-stop linear fill; ``radius``
    turns a rectangle into a rounded rectangle; ``transparency`` is a
    percentage (0 opaque, 100 invisible).
    """
    kind: ShapeKind
    x: float
    y: float
    w: float
    h: float
    fill: Optional[str] = None
    gradient: Optional[Tuple[str, str]] = None
    transparency: Optional[int] = None
    radius: Optional[float] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    line_width: Optional[float] = None      # LINE only, points


@dataclass(frozen=True)
class TextBlock:
    """Positioned text, one paragraph per line."""
    lines: Tuple[str, ...]
    x: float
    y: float
    w: float
    h: float
    font_size: int = 18
    color: str = "1E293B"
    bold: bool = False
    align: Align = Align.LEFT
    list_style: ListStyle = ListStyle.NONE
    transparency: Optional[int] = None
    font_face: str = "Arial"

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


PageElement = Union[PrimitiveShape, TextBlock]


@dataclass(frozen=True)
class PageDescriptor:
    """Fully laid-out visual specification of one slide, in paint order."""
    index: int
    background: Background
    elements: Tuple[PageElement, ...]
    variant: LayoutVariant = LayoutVariant.SINGLE_COLUMN
    title: str = ""

    @property
    def shapes(self) -> List[PrimitiveShape]:
        return [e for e in self.elements if isinstance(e, PrimitiveShape)]

    @property
    def text_blocks(self) -> List[TextBlock]:
        return [e for e in self.elements if isinstance(e, TextBlock)]


# ---------------------------------------------------------------------------
# Requests and metadata
# ---------------------------------------------------------------------------

MAX_TOPIC_LENGTH = 200


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


@dataclass(frozen=True)
class GenerationRequest:
    """Validated form input for one generation."""
    topic: str
    audience: str = ""
    style: str = ""
    slides: int = 10
    presentation_type: str = ""
    additional_info: str = ""
    theme: str = ""

    @property
    def content_budget(self) -> int:
        """Content slides left after title, agenda and conclusion."""
        return max(self.slides - 3, 0)

    @property
    def type_label(self) -> str:
        """Capitalized presentation type, 'Business' when unset."""
        t = self.presentation_type
        return t[:1].upper() + t[1:] if t else "Business"

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        min_slides: int = 5,
        max_slides: int = 25,
        default_slides: int = 10,
    ) -> GenerationRequest:
        """
        Validate a form/JSON payload (camelCase or snake_case keys).

        Raises:
            ValidationError: topic missing, blank, or longer than 200 characters
        """
        topic = _clean(payload.get("topic"))
        if not topic:
            raise ValidationError(error="Topic is required", suggestion="Enter a presentation topic.")
        if len(topic) > MAX_TOPIC_LENGTH:
            raise ValidationError(
                f"Topic must be at most {MAX_TOPIC_LENGTH} characters (got {len(topic)})",
                suggestion="Shorten the topic and move details to 'Additional information'.",
            )

        raw_slides = payload.get("slides")
        try:
            slides = int(raw_slides) if raw_slides not in (None, "") else default_slides
        except (TypeError, ValueError, OverflowError):
            slides = default_slides
        slides = max(min_slides, min(slides, max_slides))

        return cls(
            topic=topic,
            audience=_clean(payload.get("audience")),
            style=_clean(payload.get("style")),
            slides=slides,
            presentation_type=_clean(payload.get("presentationType", payload.get("presentation_type"))),
            additional_info=_clean(payload.get("additionalInfo", payload.get("additional_info"))),
            theme=_clean(payload.get("theme") or payload.get("template")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "audience": self.audience,
            "style": self.style,
            "slides": self.slides,
            "presentationType": self.presentation_type,
            "additionalInfo": self.additional_info,
            "theme": self.theme,
        }


@dataclass(frozen=True)
class OutlineSlide:
    title: str
    content: Tuple[str, ...] = ()
    type: str = "content"
    icon: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> OutlineSlide:
        content = d.get("content") or ()
        if isinstance(content, str):
            content = tuple(content.split("\n"))
        elif isinstance(content, (list, tuple)):
            content = tuple(str(c) for c in content if c is not None)
        else:
            content = (str(content),)
        return cls(
            title=_clean(d.get("title")),
            content=content,
            type=_clean(d.get("type")).lower() or "content",
            icon=_clean(d.get("icon")).lower(),
        )


@dataclass(frozen=True)
class Outline:
    """Structured presentation outline (model JSON or caller payload)."""
    title: str = ""
    subtitle: str = ""
    slides: Tuple[OutlineSlide, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Outline:
        """
        Raises:
            ValidationError: ``slides`` is missing or not a list
        """
        slides = d.get("slides")
        if not isinstance(slides, list):
            raise ValidationError(error="Presentation slides array is required",
                                  suggestion="Send presentationData with a slides list.")
        return cls(
            title=_clean(d.get("title")),
            subtitle=_clean(d.get("subtitle")),
            slides=tuple(OutlineSlide.from_dict(s) for s in slides if isinstance(s, dict)),
        )


@dataclass(frozen=True)
class DeckMetadata:
    """Document-level core properties."""
    title: str
    subject: str = ""
    author: str = "BBSF Dev Team"
    company: str = "Professional AI Tools"
    producer: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)

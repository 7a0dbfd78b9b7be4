"""
SlideForge Deck - document assembly engine

    raw text / outline → normalize() → SlideRecord[]
                       → layout()    → PageDescriptor[]
                       → serialize() → .pptx bytes

Everything here is pure computation except ``write_deck``, which writes the
serialized bytes to a path chosen by the caller.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from .models import (
    SlideKind,
    IconKind,
    ShapeKind,
    Align,
    ListStyle,
    BackgroundKind,
    LayoutVariant,
    Theme,
    SlideRecord,
    Background,
    PrimitiveShape,
    TextBlock,
    PageDescriptor,
    GenerationRequest,
    Outline,
    OutlineSlide,
    DeckMetadata,
)
from .themes import THEMES, DEFAULT_THEME_KEY, resolve_theme, list_themes
from .normalize import normalize, normalize_outline, parse_structured, extract_agenda, extract_content
from .icons import synthesize_icon
from .layout import layout, choose_variant
from .serializer import (
    serialize,
    write_deck,
    count_slides,
    build_placeholder_template,
    placeholder_values,
    minimal_demo_deck,
)

__all__ = [
    "SlideKind",
    "IconKind",
    "ShapeKind",
    "Align",
    "ListStyle",
    "BackgroundKind",
    "LayoutVariant",
    "Theme",
    "SlideRecord",
    "Background",
    "PrimitiveShape",
    "TextBlock",
    "PageDescriptor",
    "GenerationRequest",
    "Outline",
    "OutlineSlide",
    "DeckMetadata",
    "THEMES",
    "DEFAULT_THEME_KEY",
    "resolve_theme",
    "list_themes",
    "normalize",
    "normalize_outline",
    "parse_structured",
    "extract_agenda",
    "extract_content",
    "synthesize_icon",
    "layout",
    "choose_variant",
    "serialize",
    "write_deck",
    "count_slides",
    "build_placeholder_template",
    "placeholder_values",
    "minimal_demo_deck",
]

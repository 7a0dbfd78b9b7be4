"""
Layout Engine - SlideRecords + Theme → PageDescriptors.

One page per record, in order. The title record gets the gradient cover page;
every other record gets the light page with a gradient header band, a
numbered badge, an icon and a content region whose internal layout depends
on the record kind and its line count:

    agenda       numbered rows with circular markers
    conclusion   single accent-bordered panel, numbered text
    content > 4  two bordered columns, split at ceil(n / 2)
    content <= 4 single full-width panel with an accent side bar

Paint order per page: background → header / decorative shapes → icon →
content panel shapes → content text → footer.

Geometry is in inches on a 10 x 7.5 page.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from slideforge_core.deck.icons import synthesize_icon
from slideforge_core.deck.models import (
    Align,
    Background,
    LayoutVariant,
    ListStyle,
    PageDescriptor,
    PageElement,
    PrimitiveShape,
    ShapeKind,
    SlideKind,
    SlideRecord,
    TextBlock,
    Theme,
)

PAGE_WIDTH = 10.0
PAGE_HEIGHT = 7.5
WHITE = "FFFFFF"

TWO_COLUMN_THRESHOLD = 4     # strictly more lines than this → two columns
PANEL_RADIUS = 8
ICON_ANCHOR = (0.5, 1.8)
AGENDA_ROW_HEIGHT = 0.8
TITLE_CAPTION = "Professional Presentation"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def choose_variant(record: SlideRecord) -> LayoutVariant:
    """Content-region layout for a record (two columns only for > 4 lines)."""
    if record.kind == SlideKind.TITLE:
        return LayoutVariant.TITLE
    if record.kind == SlideKind.AGENDA:
        return LayoutVariant.AGENDA
    if record.kind == SlideKind.CONCLUSION:
        return LayoutVariant.CONCLUSION
    if len(record.content) > TWO_COLUMN_THRESHOLD:
        return LayoutVariant.TWO_COLUMN
    return LayoutVariant.SINGLE_COLUMN


def split_columns(lines: Sequence[str]):
    """Left column gets the extra line when the count is odd."""
    mid = math.ceil(len(lines) / 2)
    return tuple(lines[:mid]), tuple(lines[mid:])


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def _rect(x, y, w, h, fill=None, **kw) -> PrimitiveShape:
    return PrimitiveShape(ShapeKind.RECTANGLE, x, y, w, h, fill=fill, **kw)


def _panel(theme: Theme, x, y, w, h, border_color: str, border_width: float) -> PrimitiveShape:
    return _rect(x, y, w, h, fill=theme.background, radius=PANEL_RADIUS,
                 border_color=border_color, border_width=border_width)


def _footer(theme: Theme, deck_title: str) -> List[PageElement]:
    return [
        _rect(0, 7.0, PAGE_WIDTH, 0.2, fill=theme.primary),
        TextBlock((deck_title,), 0.5, 7.1, 9, 0.3, font_size=10, color=theme.primary,
                  align=Align.LEFT),
    ]


def _header(theme: Theme, record: SlideRecord, page_number: int) -> List[PageElement]:
    return [
        _rect(0, 0, PAGE_WIDTH, 1.4, fill=theme.primary, gradient=tuple(theme.gradient)),
        PrimitiveShape(ShapeKind.CIRCLE, 8.5, 0.2, 1, 1, fill=theme.accent),
        TextBlock((str(page_number),), 8.5, 0.2, 1, 1, font_size=14, color=WHITE, bold=True,
                  align=Align.CENTER),
        TextBlock((record.title,), 0.5, 0.3, 8, 0.8, font_size=32, color=WHITE, bold=True),
    ]


# ---------------------------------------------------------------------------
# Content regions
# ---------------------------------------------------------------------------

def _agenda_region(theme: Theme, lines: Sequence[str]) -> List[PageElement]:
    elements: List[PageElement] = [_panel(theme, 0.3, 1.6, 9.4, 5.4, theme.primary, 2)]
    for i, item in enumerate(lines):
        elements.append(PrimitiveShape(ShapeKind.CIRCLE, 0.8, round(2.2 + i * AGENDA_ROW_HEIGHT, 4),
                                       0.3, 0.3, fill=theme.accent))
        elements.append(TextBlock((f"{i + 1}. {item}",), 1.3, round(2.1 + i * AGENDA_ROW_HEIGHT, 4),
                                  8, 0.6, font_size=18, color=theme.text))
    return elements


def _conclusion_region(theme: Theme, lines: Sequence[str]) -> List[PageElement]:
    return [
        _panel(theme, 0.3, 1.6, 9.4, 5.4, theme.accent, 3),
        TextBlock(tuple(lines), 1.5, 1.8, 8, 5, font_size=18, color=theme.text,
                  list_style=ListStyle.NUMBERED),
    ]


def _two_column_region(theme: Theme, lines: Sequence[str]) -> List[PageElement]:
    left, right = split_columns(lines)
    return [
        _panel(theme, 0.3, 1.6, 4.5, 5.4, theme.primary, 1),
        _panel(theme, 5.2, 1.6, 4.5, 5.4, theme.primary, 1),
        TextBlock(left, 0.6, 1.8, 4, 5, font_size=16, color=theme.text,
                  list_style=ListStyle.NUMBERED),
        TextBlock(right, 5.5, 1.8, 4, 5, font_size=16, color=theme.text,
                  list_style=ListStyle.NUMBERED),
    ]


def _single_column_region(theme: Theme, lines: Sequence[str]) -> List[PageElement]:
    return [
        _panel(theme, 0.3, 1.6, 9.4, 5.4, theme.primary, 2),
        _rect(0.3, 1.6, 0.4, 5.4, fill=theme.accent),
        TextBlock(tuple(lines), 0.9, 1.8, 8.5, 5, font_size=18, color=theme.text,
                  list_style=ListStyle.NUMBERED),
    ]


_REGIONS = {
    LayoutVariant.AGENDA: _agenda_region,
    LayoutVariant.CONCLUSION: _conclusion_region,
    LayoutVariant.TWO_COLUMN: _two_column_region,
    LayoutVariant.SINGLE_COLUMN: _single_column_region,
}


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def layout_title_page(record: SlideRecord, theme: Theme, index: int = 0,
                      model: Optional[str] = None) -> PageDescriptor:
    """Gradient cover page: title, subtitle, decorations, optional model caption."""
    subtitle = record.content[0] if record.content else ""
    elements: List[PageElement] = [
        _rect(0, 0, PAGE_WIDTH, 0.4, fill=theme.accent),
        _rect(8.2, 0.8, 1.6, 1.6, fill=theme.accent, transparency=20, radius=PANEL_RADIUS),
        PrimitiveShape(ShapeKind.CIRCLE, 0.2, 5.8, 1.2, 1.2, fill=theme.secondary, transparency=30),
        PrimitiveShape(ShapeKind.LINE, 0, 1.2, PAGE_WIDTH, 0, fill=WHITE, transparency=50, line_width=2),
        TextBlock((record.title,), 0.5, 2.2, 9, 2, font_size=48, color=WHITE, bold=True,
                  align=Align.CENTER),
        TextBlock((subtitle,), 0.5, 4.4, 9, 1, font_size=28, color=WHITE, align=Align.CENTER,
                  transparency=10),
    ]
    if model:
        elements.append(TextBlock((f"Generated with {model}",), 0.5, 6.5, 9, 0.5, font_size=14,
                                  color=WHITE, align=Align.CENTER, transparency=20))
    elements.extend([
        _rect(0, 6.8, PAGE_WIDTH, 0.2, fill=theme.accent),
        TextBlock((TITLE_CAPTION,), 0.5, 7.0, 9, 0.3, font_size=12, color=WHITE, align=Align.CENTER,
                  transparency=30),
    ])
    return PageDescriptor(
        index=index,
        background=Background.linear(theme.gradient),
        elements=tuple(elements),
        variant=LayoutVariant.TITLE,
        title=record.title,
    )


def layout_content_page(record: SlideRecord, theme: Theme, index: int, page_number: int,
                        deck_title: str) -> PageDescriptor:
    """Light page with header band, badge, icon and a kind-dependent content region."""
    variant = choose_variant(record)
    lines = record.content
    region = _REGIONS[variant](theme, lines)

    elements: List[PageElement] = []
    elements.extend(_header(theme, record, page_number))
    elements.extend(synthesize_icon(record.icon, theme.accent, *ICON_ANCHOR))
    elements.extend(region)
    elements.extend(_footer(theme, deck_title))

    return PageDescriptor(
        index=index,
        background=Background.solid(theme.light_bg),
        elements=tuple(elements),
        variant=variant,
        title=record.title,
    )


def layout(records: Sequence[SlideRecord], theme: Theme, deck_title: Optional[str] = None,
           model: Optional[str] = None) -> List[PageDescriptor]:
    """
    Lay out every record, one page each, preserving order.

    Args:
        records: Normalized slide records
        theme: Resolved theme
        deck_title: Footer text (defaults to the first title record's title)
        model: Model name shown on the cover page ("Generated with ...")

    Returns:
        Page descriptors, ``len(result) == len(records)``
    """
    if deck_title is None:
        deck_title = next((r.title for r in records if r.kind == SlideKind.TITLE), "")

    pages: List[PageDescriptor] = []
    page_number = 0
    for index, record in enumerate(records):
        if record.kind == SlideKind.TITLE:
            pages.append(layout_title_page(record, theme, index, model))
        else:
            page_number += 1
            pages.append(layout_content_page(record, theme, index, page_number, deck_title))
    return pages

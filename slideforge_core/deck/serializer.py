"""
Document Serializer - PageDescriptors → .pptx (python-pptx).

Two strategies share the same painter:

- direct build: ``serialize(pages, metadata)`` paints every element in the
  order the layout engine produced it.
- template-and-substitute: ``build_placeholder_template`` lays out pages
  whose text is literal ``{{TOKEN}}`` markers; ``placeholder_values`` gives
  the token → text map an external editor substitutes afterwards.

Any failure while painting or saving is wrapped in ``SerializationError``.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Sequence, Union

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import PP_ALIGN
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Inches, Pt

from slideforge_core.deck.models import (
    Align,
    Background,
    BackgroundKind,
    DeckMetadata,
    LayoutVariant,
    ListStyle,
    PageDescriptor,
    PrimitiveShape,
    ShapeKind,
    SlideKind,
    SlideRecord,
    TextBlock,
    Theme,
)
from slideforge_core.errors import FilesystemError, SerializationError

logger = logging.getLogger(__name__)

BLANK_LAYOUT = 6
SLIDE_WIDTH_IN = 10
SLIDE_HEIGHT_IN = 7.5
MAX_TEMPLATE_SLOTS = 10

_ALIGN = {
    Align.LEFT: PP_ALIGN.LEFT,
    Align.CENTER: PP_ALIGN.CENTER,
    Align.RIGHT: PP_ALIGN.RIGHT,
}

_LIST_TAGS = ("a:buChar", "a:buAutoNum", "a:buNone")


# =============================================================================
# XML helpers
# =============================================================================

def _set_alpha(solid_fill, transparency) -> None:
    """Write DrawingML alpha on the srgbClr of a solidFill (100000 = opaque)."""
    if solid_fill is None or transparency is None:
        return
    clr = solid_fill.find(qn("a:srgbClr"))
    if clr is None:
        return
    for old in clr.findall(qn("a:alpha")):
        clr.remove(old)
    alpha = OxmlElement("a:alpha")
    opacity = max(0.0, min(1.0, 1 - transparency / 100))
    alpha.set("val", str(int(round(opacity * 100000))))
    clr.append(alpha)


def _set_list_style(paragraph, style: ListStyle) -> None:
    if style == ListStyle.NONE:
        return
    pPr = paragraph._p.get_or_add_pPr()
    for child in list(pPr):
        if child.tag in {qn(t) for t in _LIST_TAGS}:
            pPr.remove(child)
    pPr.set("marL", str(Pt(22)))
    pPr.set("indent", str(-Pt(22)))
    if style == ListStyle.NUMBERED:
        bu = OxmlElement("a:buAutoNum")
        bu.set("type", "arabicPeriod")
    else:
        bu = OxmlElement("a:buChar")
        bu.set("char", "•")
    pPr.append(bu)


# =============================================================================
# Painters
# =============================================================================

def _paint_background(slide, background: Background) -> None:
    fill = slide.background.fill
    if background.kind == BackgroundKind.GRADIENT:
        fill.gradient()
        fill.gradient_angle = background.angle
        stops = fill.gradient_stops
        stops[0].color.rgb = RGBColor.from_string(background.colors[0])
        stops[1].color.rgb = RGBColor.from_string(background.colors[-1])
    else:
        fill.solid()
        fill.fore_color.rgb = RGBColor.from_string(background.colors[0])


def _paint_line(slide, shape: PrimitiveShape) -> None:
    connector = slide.shapes.add_connector(
        MSO_CONNECTOR.STRAIGHT,
        Inches(shape.x), Inches(shape.y),
        Inches(shape.x + shape.w), Inches(shape.y + shape.h),
    )
    connector.line.color.rgb = RGBColor.from_string(shape.fill or "000000")
    connector.line.width = Pt(shape.line_width or 1)
    ln = connector._element.spPr.find(qn("a:ln"))
    if ln is not None:
        _set_alpha(ln.find(qn("a:solidFill")), shape.transparency)


def _paint_shape(slide, shape: PrimitiveShape) -> None:
    if shape.kind == ShapeKind.LINE:
        _paint_line(slide, shape)
        return

    if shape.kind == ShapeKind.CIRCLE:
        auto_shape = MSO_SHAPE.OVAL
    elif shape.radius:
        auto_shape = MSO_SHAPE.ROUNDED_RECTANGLE
    else:
        auto_shape = MSO_SHAPE.RECTANGLE

    sp = slide.shapes.add_shape(
        auto_shape, Inches(shape.x), Inches(shape.y), Inches(shape.w), Inches(shape.h)
    )

    if auto_shape == MSO_SHAPE.ROUNDED_RECTANGLE:
        # radius is in points; adjustment is a fraction of the shorter side
        shorter = min(shape.w, shape.h) or 1
        sp.adjustments[0] = min(0.5, (shape.radius / 72) / shorter)

    fill = sp.fill
    if shape.gradient:
        fill.gradient()
        fill.gradient_angle = 0
        fill.gradient_stops[0].color.rgb = RGBColor.from_string(shape.gradient[0])
        fill.gradient_stops[1].color.rgb = RGBColor.from_string(shape.gradient[1])
    elif shape.fill:
        fill.solid()
        fill.fore_color.rgb = RGBColor.from_string(shape.fill)
        _set_alpha(sp._element.spPr.find(qn("a:solidFill")), shape.transparency)
    else:
        fill.background()

    if shape.border_color:
        sp.line.color.rgb = RGBColor.from_string(shape.border_color)
        sp.line.width = Pt(shape.border_width or 1)
    else:
        sp.line.fill.background()

    # Flat shapes, no theme shadow
    sp.shadow.inherit = False


def _paint_text(slide, block: TextBlock) -> None:
    box = slide.shapes.add_textbox(
        Inches(block.x), Inches(block.y), Inches(block.w), Inches(block.h)
    )
    tf = box.text_frame
    tf.word_wrap = True

    for i, line in enumerate(block.lines or ("",)):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = _ALIGN.get(block.align, PP_ALIGN.LEFT)
        _set_list_style(p, block.list_style)

        run = p.add_run()
        run.text = line
        font = run.font
        font.name = block.font_face
        font.size = Pt(block.font_size)
        font.bold = block.bold
        font.color.rgb = RGBColor.from_string(block.color)
        _set_alpha(run._r.get_or_add_rPr().find(qn("a:solidFill")), block.transparency)


def paint_page(slide, page: PageDescriptor) -> None:
    """Paint one page descriptor onto a blank slide, element order preserved."""
    _paint_background(slide, page.background)
    for element in page.elements:
        if isinstance(element, TextBlock):
            _paint_text(slide, element)
        else:
            _paint_shape(slide, element)


def _apply_metadata(prs, metadata: DeckMetadata) -> None:
    props = prs.core_properties
    props.title = metadata.title
    props.subject = metadata.subject
    props.author = metadata.author
    props.keywords = ", ".join(metadata.keywords)
    props.comments = " | ".join(v for v in (metadata.company, metadata.producer) if v)


# =============================================================================
# Direct build
# =============================================================================

def build_presentation(pages: Sequence[PageDescriptor], metadata: DeckMetadata):
    """In-memory python-pptx Presentation, one slide per page."""
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)
    layout = prs.slide_layouts[BLANK_LAYOUT]
    for page in pages:
        paint_page(prs.slides.add_slide(layout), page)
    _apply_metadata(prs, metadata)
    return prs


def serialize(pages: Sequence[PageDescriptor], metadata: DeckMetadata) -> bytes:
    """
    Serialize page descriptors to .pptx bytes.

    Raises:
        SerializationError: any python-pptx failure (never retried)
    """
    try:
        prs = build_presentation(pages, metadata)
        buffer = BytesIO()
        prs.save(buffer)
    except Exception as e:
        logger.error(f"Serialization failed: {e}")
        raise SerializationError(str(e)) from e
    data = buffer.getvalue()
    logger.debug(f"Serialized {len(pages)} slides ({len(data)} bytes)")
    return data


def write_deck(pages: Sequence[PageDescriptor], metadata: DeckMetadata,
               path: Union[str, Path]) -> Path:
    """Serialize and write to ``path``; parent directories are created."""
    data = serialize(pages, metadata)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise FilesystemError(f"Cannot write {path}: {e}") from e
    return path


def count_slides(source: Union[str, Path, bytes]) -> int:
    """Re-read a deck (path or bytes) and count its slides."""
    if isinstance(source, (bytes, bytearray)):
        prs = Presentation(BytesIO(source))
    else:
        prs = Presentation(str(source))
    return len(prs.slides)


def slide_texts(source: Union[str, Path, bytes]) -> List[List[str]]:
    """All text frame contents per slide, in shape order."""
    prs = Presentation(BytesIO(source)) if isinstance(source, (bytes, bytearray)) else Presentation(str(source))
    return [
        [shape.text_frame.text for shape in slide.shapes if shape.has_text_frame and shape.text_frame.text]
        for slide in prs.slides
    ]


# =============================================================================
# Template-and-substitute
# =============================================================================

def slot_tokens(i: int) -> Dict[str, str]:
    return {"title": f"{{{{S{i}_TITLE}}}}", "bullets": f"{{{{S{i}_BULLETS}}}}"}


def build_placeholder_template(slot_count: int, theme: Theme,
                               metadata: DeckMetadata) -> List[PageDescriptor]:
    """
    Pages carrying literal placeholder tokens.

    A title page with ``{{TITLE}}`` / ``{{SUBTITLE}}`` followed by
    ``slot_count`` (1..10) slot pages with ``{{S<i>_TITLE}}`` and
    ``{{S<i>_BULLETS}}``.
    """
    slot_count = max(1, min(slot_count, MAX_TEMPLATE_SLOTS))
    pages = [PageDescriptor(
        index=0,
        background=Background.solid(theme.primary),
        elements=(
            TextBlock(("{{TITLE}}",), 0.5, 2, 9, 2, font_size=48, color="FFFFFF", bold=True,
                      align=Align.CENTER),
            TextBlock(("{{SUBTITLE}}",), 0.5, 4.5, 9, 1, font_size=28, color="FFFFFF",
                      align=Align.CENTER),
        ),
        title="{{TITLE}}",
        variant=LayoutVariant.TITLE,
    )]
    for i in range(1, slot_count + 1):
        tokens = slot_tokens(i)
        pages.append(PageDescriptor(
            index=i,
            background=Background.solid(theme.light_bg),
            elements=(
                PrimitiveShape(ShapeKind.RECTANGLE, 0, 0, SLIDE_WIDTH_IN, 1.4, fill=theme.primary),
                TextBlock((tokens["title"],), 0.5, 0.3, 8, 0.8, font_size=32, color="FFFFFF",
                          bold=True),
                TextBlock((tokens["bullets"],), 0.5, 1.8, 9, 5, font_size=18, color=theme.text,
                          list_style=ListStyle.BULLET),
            ),
            title=tokens["title"],
        ))
    logger.debug(f"Placeholder template with {slot_count} slots for {metadata.title!r}")
    return pages


def placeholder_values(records: Sequence[SlideRecord]) -> Dict[str, str]:
    """
    Token → replacement text for a normalized record sequence.

    The title record fills ``{{TITLE}}``/``{{SUBTITLE}}``; every following
    record fills the next slot (at most 10). Bullets are newline-joined.
    """
    values: Dict[str, str] = {}
    slot = 0
    for record in records:
        if record.kind == SlideKind.TITLE and "{{TITLE}}" not in values:
            values["{{TITLE}}"] = record.title
            values["{{SUBTITLE}}"] = record.content[0] if record.content else ""
            continue
        if slot >= MAX_TEMPLATE_SLOTS:
            break
        slot += 1
        tokens = slot_tokens(slot)
        values[tokens["title"]] = record.title or f"Slide {slot}"
        values[tokens["bullets"]] = "\n".join(record.content)
    values.setdefault("{{TITLE}}", "")
    values.setdefault("{{SUBTITLE}}", "")
    return values


# =============================================================================
# Local stand-in for the design service export
# =============================================================================

DEMO_DECK_TITLE = "Canva Integration Demo"
DEMO_DECK_MESSAGE = "This is a demo presentation created with Canva integration."


def minimal_demo_deck() -> List[PageDescriptor]:
    """Single page served when the design service export is unavailable."""
    return [PageDescriptor(
        index=0,
        background=Background.solid("FFFFFF"),
        elements=(
            TextBlock((DEMO_DECK_TITLE,), 1, 1, 8, 2, font_size=36, color="363636", bold=True,
                      align=Align.CENTER),
            TextBlock((DEMO_DECK_MESSAGE,), 1, 3, 8, 1, font_size=18, color="666666",
                      align=Align.CENTER),
        ),
        variant=LayoutVariant.TITLE,
        title=DEMO_DECK_TITLE,
    )]

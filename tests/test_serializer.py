"""
Tests for the Document Serializer (python-pptx)

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from io import BytesIO

import pytest
from pptx import Presentation

from slideforge_core.deck.demo_content import demo_records
from slideforge_core.deck.layout import layout
from slideforge_core.deck.models import (
    Background,
    DeckMetadata,
    GenerationRequest,
    PageDescriptor,
    PrimitiveShape,
    ShapeKind,
    SlideKind,
    SlideRecord,
)
from slideforge_core.deck.serializer import (
    DEMO_DECK_MESSAGE,
    MAX_TEMPLATE_SLOTS,
    build_placeholder_template,
    count_slides,
    minimal_demo_deck,
    placeholder_values,
    serialize,
    slide_texts,
    write_deck,
)
from slideforge_core.deck.themes import resolve_theme
from slideforge_core.errors import SerializationError


@pytest.fixture
def metadata():
    return DeckMetadata(
        title="Digital Transformation Strategy",
        subject="Professional Business Presentation",
        producer="SlideForge test",
        keywords=("business", "executives"),
    )


@pytest.fixture
def pages():
    request = GenerationRequest(topic="Digital Transformation Strategy", slides=10)
    return layout(demo_records(request), resolve_theme("ai-modern"), model="gpt-4")


class TestDirectBuild:
    """Tests for the direct-build strategy."""

    def test_slide_count_round_trip(self, pages, metadata):
        """Test the deck re-reads with one slide per page."""
        data = serialize(pages, metadata)
        assert count_slides(data) == len(pages) == 8

    def test_page_size(self, pages, metadata):
        """Test the 10 x 7.5 inch page."""
        prs = Presentation(BytesIO(serialize(pages, metadata)))
        assert prs.slide_width == 9144000
        assert prs.slide_height == 6858000

    def test_texts_present(self, pages, metadata):
        """Test titles and footer text land on the slides."""
        texts = slide_texts(serialize(pages, metadata))
        assert "Digital Transformation Strategy" in texts[0]
        assert "Generated with gpt-4" in texts[0]
        assert "Agenda" in texts[1]
        assert "1" in texts[1]
        assert "Next Steps and Recommendations" in texts[-1]

    def test_metadata(self, pages, metadata):
        """Test core properties."""
        prs = Presentation(BytesIO(serialize(pages, metadata)))
        props = prs.core_properties
        assert props.title == "Digital Transformation Strategy"
        assert props.subject == "Professional Business Presentation"
        assert props.author == "BBSF Dev Team"
        assert props.keywords == "business, executives"
        assert "Professional AI Tools" in props.comments

    def test_numbered_list_markup(self, pages, metadata):
        """Test content lines carry auto-numbering."""
        data = serialize(pages, metadata)
        prs = Presentation(BytesIO(data))
        xml = prs.slides[2].shapes._spTree.xml
        assert "buAutoNum" in xml
        assert "arabicPeriod" in xml

    def test_transparency_markup(self, pages, metadata):
        """Test translucent shapes carry an alpha value."""
        prs = Presentation(BytesIO(serialize(pages, metadata)))
        xml = prs.slides[0].shapes._spTree.xml
        assert '<a:alpha val="80000"/>' in xml

    def test_write_deck(self, pages, metadata, temp_dir):
        """Test writing creates parent directories."""
        path = write_deck(pages, metadata, temp_dir / "out" / "deck.pptx")
        assert path.exists()
        assert count_slides(path) == len(pages)

    def test_invalid_color_raises(self, metadata):
        """Test painter failures become SerializationError."""
        bad = PageDescriptor(
            index=0,
            background=Background.solid("FFFFFF"),
            elements=(PrimitiveShape(ShapeKind.RECTANGLE, 0, 0, 1, 1, fill="not-a-color"),),
        )
        with pytest.raises(SerializationError):
            serialize([bad], metadata)

    def test_minimal_demo_deck(self, metadata):
        """Test the single-page stand-in deck."""
        data = serialize(minimal_demo_deck(), metadata)
        assert count_slides(data) == 1
        assert DEMO_DECK_MESSAGE in slide_texts(data)[0]


class TestPlaceholderTemplate:
    """Tests for the template-and-substitute strategy."""

    def test_tokens_on_slides(self, metadata):
        """Test title and slot tokens appear literally."""
        pages = build_placeholder_template(3, resolve_theme("ai-modern"), metadata)
        texts = slide_texts(serialize(pages, metadata))
        assert len(texts) == 4
        assert texts[0] == ["{{TITLE}}", "{{SUBTITLE}}"]
        assert texts[2] == ["{{S2_TITLE}}", "{{S2_BULLETS}}"]

    def test_slot_count_clamped(self, metadata):
        """Test the slot count stays within 1..10."""
        theme = resolve_theme("ai-modern")
        assert len(build_placeholder_template(0, theme, metadata)) == 2
        assert len(build_placeholder_template(40, theme, metadata)) == MAX_TEMPLATE_SLOTS + 1

    def test_placeholder_values(self):
        """Test title and slot values from records."""
        records = [
            SlideRecord("Deck", ("Subtitle",), kind=SlideKind.TITLE),
            SlideRecord("Agenda", ("One", "Two"), kind=SlideKind.AGENDA),
            SlideRecord("Body", ("Point A", "Point B")),
        ]
        values = placeholder_values(records)
        assert values["{{TITLE}}"] == "Deck"
        assert values["{{SUBTITLE}}"] == "Subtitle"
        assert values["{{S1_TITLE}}"] == "Agenda"
        assert values["{{S2_BULLETS}}"] == "Point A\nPoint B"
        assert "{{S3_TITLE}}" not in values

    def test_placeholder_values_capped(self):
        """Test at most ten slots are filled."""
        records = [SlideRecord("Deck", ("Sub",), kind=SlideKind.TITLE)] + [
            SlideRecord(f"Slide {i}", ("Line",)) for i in range(15)
        ]
        values = placeholder_values(records)
        assert "{{S10_TITLE}}" in values
        assert "{{S11_TITLE}}" not in values

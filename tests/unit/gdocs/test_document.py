"""Tests for the document snapshot model."""

from gdocs.document import Document, StructuralElement, TextRun
from gdocs.operations import DeleteRange, Range


class TestFromApi:
    def test_paragraphs_and_headings(self, doc_builder):
        data = doc_builder().heading("Intro", 1).paragraph("Body text").build()
        doc = Document.from_api(data)

        assert doc.document_id == "doc123"
        assert doc.revision_id == "rev1"
        heading, body = doc.paragraphs()
        assert heading.heading_level == 1
        assert heading.plain_text == "Intro"
        assert heading.heading_id is not None
        assert body.heading_level is None
        assert (body.start_index, body.end_index) == (7, 17)

    def test_end_index(self, doc_builder):
        doc = Document.from_api(doc_builder().paragraph("abc").build())
        assert doc.end_index == 5

    def test_empty_body(self):
        doc = Document.from_api({"documentId": "d", "title": "t"})
        assert doc.content == ()
        assert doc.end_index == 1
        assert doc.revision_id is None

    def test_section_break_is_other(self, doc_builder):
        doc = Document.from_api(doc_builder().build())
        (element,) = doc.content
        assert not element.is_paragraph
        assert not element.is_table

    def test_table_cells(self, doc_builder):
        data = doc_builder().paragraph("before").table([["A", "B"], ["1", "2"]]).paragraph("after").build()
        doc = Document.from_api(data)

        (table,) = doc.tables()
        assert len(table.rows) == 2
        assert [cell.text for cell in table.rows[1]] == ["1\n", "2\n"]
        first = table.rows[0][0]
        assert first.first_paragraph.start_index == first.start_index + 1
        assert doc.paragraphs()[-1].plain_text == "after"
        assert doc.paragraphs()[-1].start_index == table.end_index


class TestHeadingLevel:
    def test_non_heading_styles(self):
        for style in ("NORMAL_TEXT", "TITLE", "SUBTITLE", None):
            element = StructuralElement(kind="paragraph", start_index=1, end_index=2, style_name=style)
            assert element.heading_level is None

    def test_heading_six(self):
        element = StructuralElement(kind="paragraph", start_index=1, end_index=2, style_name="HEADING_6")
        assert element.heading_level == 6


class TestIndexAt:
    def test_single_run(self):
        element = StructuralElement(
            kind="paragraph", start_index=10, end_index=16, runs=(TextRun(10, 16, "hello\n"),)
        )
        assert element.index_at(0) == 10
        assert element.index_at(4) == 14

    def test_gap_between_runs(self):
        # An inline object occupies index 13 without contributing text
        element = StructuralElement(
            kind="paragraph",
            start_index=10,
            end_index=18,
            runs=(TextRun(10, 13, "abc"), TextRun(13, 14, ""), TextRun(14, 18, "def\n")),
        )
        assert element.index_at(4) == 15

    def test_surrogate_pairs_take_two_units(self):
        element = StructuralElement(
            kind="paragraph", start_index=1, end_index=5, runs=(TextRun(1, 5, "😀a\n"),)
        )
        assert element.index_at(1) == 3


class TestBind:
    def test_bind_carries_revision(self, doc_builder):
        doc = Document.from_api(doc_builder(revision_id="rev-42").paragraph("x").build())
        bound = doc.bind([DeleteRange(Range(1, 2))])
        assert bound.document_id == "doc123"
        assert bound.revision_id == "rev-42"
        assert bound.operations == (DeleteRange(Range(1, 2)),)

"""Tests for document search and batch replacement."""

import pytest

from core.errors import ValidationError
from gdocs.document import Document
from gdocs.operations import DeleteRange, InsertText, Range
from gdocs.search import (
    CONTEXT_CHARS,
    build_replace_operations,
    preview_replacements,
    search_document,
)
from gdocs.sections import parse_sections


@pytest.fixture
def abc_doc(doc_builder):
    return Document.from_api(doc_builder().paragraph("abc ABC abc").build())


def _apply(text: str, operations) -> str:
    """Apply operations to a body string addressed from index 1."""
    body = list(text)
    for op in operations:
        if isinstance(op, DeleteRange):
            del body[op.range.start_index - 1 : op.range.end_index - 1]
        else:
            body[op.index - 1 : op.index - 1] = list(op.text)
    return "".join(body)


class TestSearchDocument:
    def test_case_insensitive_matches(self, abc_doc):
        matches = search_document(abc_doc, "abc")
        assert [(m.start_index, m.end_index) for m in matches] == [(1, 4), (5, 8), (9, 12)]
        assert [m.text for m in matches] == ["abc", "ABC", "abc"]

    def test_empty_query_rejected(self, abc_doc):
        with pytest.raises(ValidationError):
            search_document(abc_doc, "")

    def test_no_matches(self, abc_doc):
        assert search_document(abc_doc, "xyz") == []

    def test_matches_do_not_overlap(self, doc_builder):
        doc = Document.from_api(doc_builder().paragraph("aaaa").build())
        assert [m.start_index for m in search_document(doc, "aa")] == [1, 3]

    def test_context_is_trimmed(self, doc_builder):
        text = "x" * 50 + "needle" + "y" * 50
        doc = Document.from_api(doc_builder().paragraph(text).build())
        (match,) = search_document(doc, "needle")
        assert match.context == "x" * CONTEXT_CHARS + "needle" + "y" * CONTEXT_CHARS
        assert match.paragraph_index == 1

    def test_offsets_survive_case_mapping_that_changes_length(self, doc_builder):
        # "İ".lower() is two code points; positions must still address the original text
        doc = Document.from_api(doc_builder().paragraph("İabc").build())
        (match,) = search_document(doc, "abc")
        assert (match.start_index, match.end_index) == (2, 5)
        assert match.text == "abc"
        assert match.context_offset == 1

    def test_section_scope(self, doc_builder):
        data = (
            doc_builder()
            .heading("One", 1)
            .paragraph("target here")
            .heading("Two", 1)
            .paragraph("target there")
            .build()
        )
        doc = Document.from_api(data)
        two = parse_sections(doc)[1]
        (match,) = search_document(doc, "target", section=two)
        assert two.section_range.contains(match.start_index)

    def test_section_scope_includes_heading(self, doc_builder):
        doc = Document.from_api(doc_builder().heading("Target heading").paragraph("body").build())
        section = parse_sections(doc)[0]
        assert len(search_document(doc, "target", section=section)) == 1

    def test_to_dict(self, abc_doc):
        data = search_document(abc_doc, "ABC")[1].to_dict()
        assert data == {
            "startIndex": 5,
            "endIndex": 8,
            "text": "ABC",
            "context": "abc ABC abc",
            "paragraphIndex": 1,
        }


class TestBuildReplaceOperations:
    def test_deletes_descending_then_inserts_ascending(self, abc_doc):
        operations = build_replace_operations(search_document(abc_doc, "abc"), "xy")
        assert operations == [
            DeleteRange(Range(9, 12)),
            DeleteRange(Range(5, 8)),
            DeleteRange(Range(1, 4)),
            InsertText(1, "xy"),
            InsertText(4, "xy"),
            InsertText(7, "xy"),
        ]

    def test_operations_produce_replaced_text(self, abc_doc):
        operations = build_replace_operations(search_document(abc_doc, "abc"), "longer")
        assert _apply("abc ABC abc\n", operations) == "longer longer longer\n"

    def test_empty_replacement_only_deletes(self, abc_doc):
        operations = build_replace_operations(search_document(abc_doc, "abc"), "")
        assert all(isinstance(op, DeleteRange) for op in operations)
        assert _apply("abc ABC abc\n", operations) == "  \n"

    def test_unordered_matches_are_sorted(self, abc_doc):
        matches = list(reversed(search_document(abc_doc, "abc")))
        assert build_replace_operations(matches, "z") == build_replace_operations(
            search_document(abc_doc, "abc"), "z"
        )

    def test_no_matches(self):
        assert build_replace_operations([], "x") == []


class TestPreviewReplacements:
    def test_brackets_match_and_replacement(self, abc_doc):
        previews = preview_replacements(search_document(abc_doc, "abc"), "xy")
        assert previews[0] == ("[abc] ABC abc", "[xy] ABC abc")
        assert previews[1] == ("abc [ABC] abc", "abc [xy] abc")

    def test_brackets_the_match_not_an_earlier_repeat(self, doc_builder):
        doc = Document.from_api(doc_builder().paragraph("abc abc").build())
        previews = preview_replacements(search_document(doc, "abc"), "z")
        assert previews[1] == ("abc [abc]", "abc [z]")

"""
Google Docs Document Snapshot

Read-only model of a document as returned by `documents.get`: an ordered list
of positioned structural elements (paragraphs, tables, everything else).

A `Document` is a snapshot of one retrieval. Indices are only meaningful
against that exact revision, so operations computed from a snapshot are bound
to it with `Document.bind()`; the resulting `BoundScript` carries the
snapshot's `revisionId`, which `DocsClient.apply()` sends as
`writeControl.requiredRevisionId`. The API rejects the batch if the document
changed after the snapshot was taken.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from gdocs.operations import EditOperation, text_length

logger = logging.getLogger(__name__)

PARAGRAPH = "paragraph"
TABLE = "table"
OTHER = "other"

_HEADING_STYLE_RE = re.compile(r"^HEADING_([1-6])$")


@dataclass(frozen=True)
class TextRun:
    start_index: int
    end_index: int
    content: str


@dataclass(frozen=True)
class TableCell:
    start_index: int
    end_index: int
    content: tuple[StructuralElement, ...]

    @property
    def text(self) -> str:
        return "".join(element.text for element in self.content if element.is_paragraph)

    @property
    def first_paragraph(self) -> StructuralElement | None:
        if self.content and self.content[0].is_paragraph:
            return self.content[0]
        return None


@dataclass(frozen=True)
class StructuralElement:
    """
    One positioned unit of a document body.

    Paragraphs carry their named style, heading ID and text runs; tables carry
    rows of cells, each of which holds its own nested element list.
    """

    kind: str
    start_index: int
    end_index: int
    style_name: str | None = None
    heading_id: str | None = None
    runs: tuple[TextRun, ...] = ()
    rows: tuple[tuple[TableCell, ...], ...] = ()

    @property
    def is_paragraph(self) -> bool:
        return self.kind == PARAGRAPH

    @property
    def is_table(self) -> bool:
        return self.kind == TABLE

    @property
    def text(self) -> str:
        """Raw paragraph text including the terminating newline."""
        return "".join(run.content for run in self.runs)

    @property
    def plain_text(self) -> str:
        """Paragraph text with its single trailing newline removed."""
        text = self.text
        return text[:-1] if text.endswith("\n") else text

    def index_at(self, offset: int) -> int:
        """
        Document index of the character at `offset` within `text`.

        Walks the text runs so that non-text elements between runs and
        characters that take two UTF-16 units are accounted for.
        """
        remaining = offset
        for run in self.runs:
            if remaining <= len(run.content):
                return run.start_index + text_length(run.content[:remaining])
            remaining -= len(run.content)
        return self.runs[-1].end_index if self.runs else self.start_index

    @property
    def heading_level(self) -> int | None:
        if not self.is_paragraph or not self.style_name:
            return None
        match = _HEADING_STYLE_RE.match(self.style_name)
        return int(match.group(1)) if match else None


@dataclass(frozen=True)
class BoundScript:
    """Operations valid only against the document revision they were computed from."""

    document_id: str
    revision_id: str | None
    operations: tuple[EditOperation, ...]


@dataclass(frozen=True)
class Document:
    document_id: str
    title: str
    revision_id: str | None
    content: tuple[StructuralElement, ...]

    @property
    def end_index(self) -> int:
        """Index just past the last body element (the body always ends with a newline)."""
        return self.content[-1].end_index if self.content else 1

    def paragraphs(self) -> list[StructuralElement]:
        return [element for element in self.content if element.is_paragraph]

    def tables(self) -> list[StructuralElement]:
        return [element for element in self.content if element.is_table]

    def bind(self, operations) -> BoundScript:
        """Pair `operations` with this snapshot's revision."""
        return BoundScript(self.document_id, self.revision_id, tuple(operations))

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Document:
        """Create from a `documents.get` response."""
        body = data.get("body", {}) or {}
        content = tuple(_parse_element(raw) for raw in body.get("content", []) or [])
        logger.debug(f"Parsed document {data.get('documentId')}: {len(content)} elements, revision={data.get('revisionId')}")
        return cls(
            document_id=data.get("documentId", ""),
            title=data.get("title", ""),
            revision_id=data.get("revisionId"),
            content=content,
        )


def _parse_element(raw: dict[str, Any]) -> StructuralElement:
    start = raw.get("startIndex", 0)
    end = raw.get("endIndex", start)

    if "paragraph" in raw:
        paragraph = raw["paragraph"] or {}
        style = paragraph.get("paragraphStyle", {}) or {}
        runs = []
        for element in paragraph.get("elements", []) or []:
            run_start = element.get("startIndex", start)
            run_end = element.get("endIndex", run_start)
            # Non-text runs (inline objects, page breaks) keep their indices but contribute no text
            content = (element.get("textRun") or {}).get("content", "")
            runs.append(TextRun(run_start, run_end, content))
        return StructuralElement(
            kind=PARAGRAPH,
            start_index=start,
            end_index=end,
            style_name=style.get("namedStyleType"),
            heading_id=style.get("headingId"),
            runs=tuple(runs),
        )

    if "table" in raw:
        rows = []
        for raw_row in (raw["table"] or {}).get("tableRows", []) or []:
            cells = []
            for raw_cell in raw_row.get("tableCells", []) or []:
                cell_start = raw_cell.get("startIndex", 0)
                cells.append(
                    TableCell(
                        start_index=cell_start,
                        end_index=raw_cell.get("endIndex", cell_start),
                        content=tuple(_parse_element(item) for item in raw_cell.get("content", []) or []),
                    )
                )
            rows.append(tuple(cells))
        return StructuralElement(kind=TABLE, start_index=start, end_index=end, rows=tuple(rows))

    return StructuralElement(kind=OTHER, start_index=start, end_index=end)

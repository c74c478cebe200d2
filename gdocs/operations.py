"""
Google Docs Edit Operations

Typed, immutable representations of the `batchUpdate` requests the compiler and
the section tools produce. Every position is a 1-based Google Docs index and
every range is half-open (`[start_index, end_index)`).

Operations are kept as dataclasses rather than raw request dicts so that code
which shifts positions (see `gdocs/rebase.py`) can dispatch on the variant and
cannot silently miss an index field. `to_request()` produces the wire shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


def text_length(text: str) -> int:
    """
    Length of `text` in Google Docs index units.

    The Docs API counts UTF-16 code units, so characters outside the Basic
    Multilingual Plane (most emoji) occupy two indices.
    """
    return len(text.encode("utf-16-le")) // 2


@dataclass(frozen=True)
class Range:
    """Half-open `[start_index, end_index)` span of document indices."""

    start_index: int
    end_index: int

    @property
    def length(self) -> int:
        return self.end_index - self.start_index

    @property
    def is_empty(self) -> bool:
        return self.end_index <= self.start_index

    def shifted(self, offset: int) -> Range:
        return Range(self.start_index + offset, self.end_index + offset)

    def contains(self, index: int) -> bool:
        return self.start_index <= index < self.end_index

    def to_dict(self) -> dict[str, int]:
        return {"startIndex": self.start_index, "endIndex": self.end_index}


@dataclass(frozen=True)
class InsertText:
    index: int
    text: str

    def to_request(self) -> dict[str, Any]:
        return {"insertText": {"location": {"index": self.index}, "text": self.text}}


@dataclass(frozen=True)
class SetTextStyle:
    range: Range
    text_style: dict[str, Any]
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateTextStyle": {
                "range": self.range.to_dict(),
                "textStyle": self.text_style,
                "fields": self.fields,
            }
        }


@dataclass(frozen=True)
class SetParagraphStyle:
    range: Range
    paragraph_style: dict[str, Any]
    fields: str

    def to_request(self) -> dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": self.range.to_dict(),
                "paragraphStyle": self.paragraph_style,
                "fields": self.fields,
            }
        }


@dataclass(frozen=True)
class SetBullets:
    range: Range
    bullet_preset: str

    def to_request(self) -> dict[str, Any]:
        return {"createParagraphBullets": {"range": self.range.to_dict(), "bulletPreset": self.bullet_preset}}


@dataclass(frozen=True)
class DeleteRange:
    range: Range

    def to_request(self) -> dict[str, Any]:
        return {"deleteContentRange": {"range": self.range.to_dict()}}


@dataclass(frozen=True)
class InsertTable:
    index: int
    rows: int
    columns: int

    def to_request(self) -> dict[str, Any]:
        return {"insertTable": {"location": {"index": self.index}, "rows": self.rows, "columns": self.columns}}


EditOperation = Union[InsertText, SetTextStyle, SetParagraphStyle, SetBullets, DeleteRange, InsertTable]


def to_requests(operations) -> list[dict[str, Any]]:
    """Serialize operations to the request list accepted by `documents.batchUpdate`."""
    return [operation.to_request() for operation in operations]


def style_fields(style: dict[str, Any]) -> str:
    """Generate the fields mask for updateTextStyle from style keys."""
    return ",".join(style.keys())


@dataclass(frozen=True)
class CellData:
    """Logical content of one table cell, recorded at compile time."""

    row: int
    col: int
    text: str
    bold: bool = False


@dataclass(frozen=True)
class TableSpec:
    """
    A table that was compiled to a placeholder paragraph.

    `placeholder_range` covers the `[TABLE:<rows>x<cols>]` marker (without its
    trailing newline) at the position the compiler inserted it. Row 0 of
    `cell_data` holds the header cells, which are always bold.
    """

    placeholder_range: Range
    rows: int
    cols: int
    cell_data: tuple[CellData, ...]

    @property
    def marker(self) -> str:
        return placeholder_marker(self.rows, self.cols)


def placeholder_marker(rows: int, cols: int) -> str:
    """Literal text that stands in for a table until it is materialized."""
    return f"[TABLE:{rows}x{cols}]"


@dataclass(frozen=True)
class OperationScript:
    """
    Result of compiling markdown: an ordered operation script plus the final cursor.

    `start_index` is the position the first insertion targets (1 for a freshly
    compiled script); `cursor` is the index just past the last inserted
    character, so `cursor == start_index + inserted_length` always holds.
    """

    operations: tuple[EditOperation, ...]
    cursor: int
    tables: tuple[TableSpec, ...] = ()
    start_index: int = 1

    @property
    def inserted_length(self) -> int:
        return sum(text_length(op.text) for op in self.operations if isinstance(op, InsertText))

    @property
    def has_tables(self) -> bool:
        return bool(self.tables)

    def to_requests(self) -> list[dict[str, Any]]:
        return to_requests(self.operations)

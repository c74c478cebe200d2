"""
Google Docs Table Materialization

Second pass for compiled tables. The compiler writes each table as a
`[TABLE:<rows>x<cols>]` placeholder paragraph; once that text is committed,
every placeholder is swapped for a native table and its cells are filled.

Tables are processed one at a time, and each step re-reads the document
because the previous batch is the only source of truth for indices:

1. Read the document and locate the placeholder (missing: warn, skip table).
2. One batch: delete the placeholder text, insert the table at its start.
3. Read the document again and take the table at the placeholder's ordinal
   (missing: TableMaterializationError, remaining tables are abandoned).
4. Plan one insertion per empty cell, skipping out-of-bounds coordinates and
   cells that already contain text.
5. One batch: insert cell text in ascending anchor order, each index pushed
   right by everything inserted before it; header cells are made bold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.errors import TableMaterializationError
from gdocs.operations import (
    DeleteRange,
    InsertTable,
    InsertText,
    Range,
    SetTextStyle,
    text_length,
)

if TYPE_CHECKING:
    from gdocs.client import DocsClient
    from gdocs.document import Document, StructuralElement
    from gdocs.operations import EditOperation, TableSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellInsertion:
    """Text waiting to be written into one empty table cell."""

    row: int
    col: int
    anchor: int
    text: str
    bold: bool = False


def find_placeholder(document: Document, table: TableSpec, search_from: int = 1) -> Range | None:
    """
    Locate the first placeholder marker for `table` at or after `search_from`.

    Returns the range of the marker text itself (without its paragraph's
    newline), or None when no paragraph contains it. Placeholders are matched
    by their `[TABLE:<rows>x<cols>]` text only, so among tables of equal
    dimensions the earliest remaining placeholder wins.
    """
    marker = table.marker
    for paragraph in document.paragraphs():
        if paragraph.start_index < search_from:
            continue
        for run in paragraph.runs:
            offset = run.content.find(marker)
            if offset == -1:
                continue
            start = run.start_index + text_length(run.content[:offset])
            return Range(start, start + text_length(marker))
    return None


def build_table_insert_operations(placeholder: Range, table: TableSpec) -> list[EditOperation]:
    """Delete the placeholder marker, then insert the native table where it began."""
    return [
        DeleteRange(placeholder),
        InsertTable(placeholder.start_index, table.rows, table.cols),
    ]


def plan_cell_insertions(element: StructuralElement, table: TableSpec, ordinal: int = 0) -> list[CellInsertion]:
    """
    Work out where each recorded cell's text goes in a freshly read table.

    Cells are skipped with a warning when their coordinates fall outside the
    table, when they have no paragraph to write into, or when they already
    contain non-whitespace text. Cells with blank text are skipped silently.
    The result is sorted by anchor index.
    """
    pending = []
    for cell_data in table.cell_data:
        row, col = cell_data.row, cell_data.col

        if row >= len(element.rows) or col >= len(element.rows[row]):
            logger.warning(f"Cell [{row}][{col}] out of bounds in table {ordinal}")
            continue

        cell = element.rows[row][col]
        if not cell.content:
            logger.warning(f"Cell [{row}][{col}] has no content in table {ordinal}")
            continue

        paragraph = cell.first_paragraph
        if paragraph is None or not paragraph.runs:
            logger.warning(f"Cell [{row}][{col}] has no paragraph in table {ordinal}")
            continue

        existing = paragraph.text.strip()
        if existing:
            logger.warning(f'Cell [{row}][{col}] already contains text: "{existing}" - skipping')
            continue

        if not cell_data.text.strip():
            continue

        pending.append(
            CellInsertion(
                row=row,
                col=col,
                anchor=paragraph.runs[0].start_index,
                text=cell_data.text,
                bold=cell_data.bold,
            )
        )

    # Row-major order is not guaranteed to match index order
    pending.sort(key=lambda insertion: insertion.anchor)
    return pending


def build_cell_operations(insertions: list[CellInsertion]) -> list[EditOperation]:
    """
    Turn anchor-sorted cell insertions into one batch.

    Every insertion shifts all later anchors in the table, so each index is
    the cell's anchor plus the total length inserted before it.
    """
    operations: list[EditOperation] = []
    cumulative_offset = 0

    for insertion in insertions:
        index = insertion.anchor + cumulative_offset
        length = text_length(insertion.text)
        operations.append(InsertText(index, insertion.text))
        if insertion.bold:
            operations.append(SetTextStyle(Range(index, index + length), {"bold": True}, "bold"))
        cumulative_offset += length

    return operations


async def materialize_tables(
    client: DocsClient,
    document_id: str,
    tables: tuple[TableSpec, ...] | list[TableSpec],
    search_from: int = 1,
) -> int:
    """
    Replace committed placeholders with populated native tables.

    Args:
        client: Docs API client used for every read and batch.
        document_id: The document holding the placeholders.
        tables: TableSpecs in the order the compiler produced them.
        search_from: Lowest index a placeholder may start at; text before it
            is never mistaken for a placeholder.

    Returns:
        The number of tables inserted.

    Raises:
        TableMaterializationError: If an inserted table is missing on re-read.
    """
    materialized = 0

    for table in tables:
        document = await client.get_document(document_id)
        placeholder = find_placeholder(document, table, search_from)
        if placeholder is None:
            logger.warning(f"Could not find placeholder for table {table.rows}x{table.cols}")
            continue

        ordinal = sum(1 for element in document.tables() if element.start_index < placeholder.start_index)
        logger.debug(f"Materializing table {table.marker} at {placeholder.start_index} (ordinal {ordinal})")
        await client.apply(document.bind(build_table_insert_operations(placeholder, table)))

        document = await client.get_document(document_id)
        found = document.tables()
        if ordinal >= len(found):
            raise TableMaterializationError(ordinal, len(found))

        insertions = plan_cell_insertions(found[ordinal], table, ordinal)
        operations = build_cell_operations(insertions)
        if operations:
            await client.apply(document.bind(operations))
        logger.info(f"Inserted table {table.rows}x{table.cols} with {len(insertions)} populated cells")
        materialized += 1

    return materialized

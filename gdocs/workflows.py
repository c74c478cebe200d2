"""
Google Docs Section Workflows

One coroutine per user-facing command. Each reads a fresh snapshot, computes
its operations against that snapshot, applies them as a single batch pinned to
the snapshot's revision, and then materializes any tables the markdown
contained.

Compiled markdown is spliced with `splice_script()`: all text insertions go
first, then the inserted paragraphs are reset to NORMAL_TEXT, then the
compiled styles are applied. Inserted paragraphs would otherwise inherit the
named style of the paragraph they were inserted into (typically a heading).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.errors import ValidationError
from core.utils import validate_positive_int
from gdocs.client import document_url
from gdocs.markdown_parser import compile_blocks
from gdocs.operations import DeleteRange, InsertText, Range, SetParagraphStyle
from gdocs.rebase import rebase
from gdocs.search import build_replace_operations, preview_replacements, search_document
from gdocs.sections import (
    build_outline,
    delete_section_content_operation,
    delete_section_operation,
    format_section_text,
    parse_sections,
    require_section,
)
from gdocs.tables import materialize_tables
from gdocs.tokens import Heading, Text, parse_markdown

if TYPE_CHECKING:
    from gdocs.client import DocsClient
    from gdocs.document import Document
    from gdocs.operations import EditOperation, OperationScript
    from gdocs.search import Match
    from gdocs.sections import Section

logger = logging.getLogger(__name__)

MAX_HEADING_LEVEL = 6
NORMAL_TEXT_STYLE = {"namedStyleType": "NORMAL_TEXT"}


@dataclass(frozen=True)
class WriteResult:
    document_id: str
    operations: int
    tables: int
    section: str | None = None

    @property
    def url(self) -> str:
        return document_url(self.document_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": True,
            "documentId": self.document_id,
            "url": self.url,
            "operations": self.operations,
            "tables": self.tables,
        }
        if self.section is not None:
            data["section"] = self.section
        return data


@dataclass(frozen=True)
class DeleteResult:
    section: Section
    deleted: bool


@dataclass(frozen=True)
class ReplaceResult:
    matches: list[Match]
    previews: list[tuple[str, str]] = field(default_factory=list)
    applied: bool = False


def splice_script(script: OperationScript, index: int, document_end: int) -> tuple[OperationScript, list[EditOperation]]:
    """
    Prepare a compiled script for insertion at `index` of an existing body.

    Returns the rebased script (for its table placeholders) and the batch to
    send. Indices at or past `document_end` cannot take an insertion, so the
    final paragraph is split first and the script goes into the new empty
    paragraph it leaves at the end.
    """
    prefix: list[EditOperation] = []
    reset_extra = 0
    if index >= document_end:
        prefix.append(InsertText(document_end - 1, "\n"))
        index = document_end
        # The trailing empty paragraph after the inserted content
        reset_extra = 1

    rebased = rebase(script, index)
    inserts = [op for op in rebased.operations if isinstance(op, InsertText)]
    styles = [op for op in rebased.operations if not isinstance(op, InsertText)]

    operations = prefix + inserts
    if rebased.cursor > index:
        operations.append(SetParagraphStyle(Range(index, rebased.cursor + reset_extra), NORMAL_TEXT_STYLE, "namedStyleType"))
    operations.extend(styles)
    return rebased, operations


async def _apply_script(
    client: DocsClient,
    document: Document,
    script: OperationScript,
    operations: list[EditOperation],
) -> int:
    """Apply one bound batch, then materialize the script's tables."""
    await client.apply(document.bind(operations))
    if not script.has_tables:
        return 0
    return await materialize_tables(client, document.document_id, script.tables, search_from=script.start_index)


async def clear_document(client: DocsClient, document_id: str) -> bool:
    """Delete all body content, keeping the final paragraph. Returns False if already empty."""
    document = await client.get_document(document_id)
    if document.end_index <= 2:
        return False
    await client.apply(document.bind([DeleteRange(Range(1, document.end_index - 1))]))
    logger.info(f"Cleared document {document_id}")
    return True


async def markdown_to_document(
    client: DocsClient,
    markdown_text: str,
    document_id: str | None = None,
    title: str = "Untitled",
) -> WriteResult:
    """
    Write markdown into a new document, or replace the content of an existing one.
    """
    if document_id:
        await clear_document(client, document_id)
    else:
        created = await client.create_document(title)
        document_id = created["documentId"]

    document = await client.get_document(document_id)
    script = compile_blocks(parse_markdown(markdown_text))
    rebased, operations = splice_script(script, 1, document.end_index)
    tables = await _apply_script(client, document, rebased, operations)

    logger.info(f"Markdown written to {document_id}: {len(operations)} operations, {tables} tables")
    return WriteResult(document_id, len(operations), tables)


async def list_sections(client: DocsClient, document_id: str) -> tuple[Document, list[Section]]:
    """Return the document snapshot and its nested section outline."""
    document = await client.get_document(document_id)
    return document, build_outline(parse_sections(document))


async def read_section(client: DocsClient, document_id: str, title: str) -> tuple[Section, str]:
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), title)
    return section, format_section_text(document, section)


async def update_section(client: DocsClient, document_id: str, title: str, markdown_text: str) -> WriteResult:
    """
    Replace a section's content (keeping its heading) with compiled markdown.

    The deletion and the insertion go out in one batch, so either both apply
    or neither does.
    """
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), title)
    logger.info(f"Updating section: {section.title} (H{section.level})")

    operations: list[EditOperation] = []
    document_end = document.end_index
    delete = delete_section_content_operation(section)
    if delete is not None:
        operations.append(delete)
        document_end -= delete.range.length

    script = compile_blocks(parse_markdown(markdown_text))
    rebased, spliced = splice_script(script, section.heading_range.end_index, document_end)
    operations.extend(spliced)
    tables = await _apply_script(client, document, rebased, operations)
    return WriteResult(document_id, len(operations), tables, section.title)


async def append_to_section(client: DocsClient, document_id: str, title: str, markdown_text: str) -> WriteResult:
    """Insert compiled markdown at the end of a section's content."""
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), title)
    logger.info(f"Appending to section: {section.title}")

    script = compile_blocks(parse_markdown(markdown_text))
    rebased, operations = splice_script(script, section.content_range.end_index, document.end_index)
    tables = await _apply_script(client, document, rebased, operations)
    return WriteResult(document_id, len(operations), tables, section.title)


async def insert_section(
    client: DocsClient,
    document_id: str,
    title: str,
    level: int,
    markdown_text: str,
    before: str | None = None,
    after: str | None = None,
) -> WriteResult:
    """
    Insert a new heading plus content before or after an existing section.

    The heading and the content are compiled as one script and applied in a
    single batch.
    """
    if bool(before) == bool(after):
        raise ValidationError("Specify exactly one of before or after")
    validate_positive_int(level, "level", MAX_HEADING_LEVEL)
    if not title.strip():
        raise ValidationError("Section title cannot be empty")

    document = await client.get_document(document_id)
    target = require_section(parse_sections(document), before or after)
    index = target.section_range.start_index if before else target.section_range.end_index
    logger.info(f"Inserting '{title}' (H{level}) {'before' if before else 'after'} '{target.title}'")

    blocks = (Heading(level=level, children=(Text(title),), text=title),) + parse_markdown(markdown_text)
    script = compile_blocks(blocks)
    rebased, operations = splice_script(script, index, document.end_index)
    tables = await _apply_script(client, document, rebased, operations)
    return WriteResult(document_id, len(operations), tables, title)


async def delete_section(client: DocsClient, document_id: str, title: str, confirm: bool = False) -> DeleteResult:
    """
    Delete a section's heading and content.

    Nothing is changed unless `confirm` is True; the located section is
    returned either way so the caller can show what would be removed.
    """
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), title)
    if not confirm:
        return DeleteResult(section, deleted=False)

    delete = delete_section_operation(section)
    if delete.range.is_empty:
        logger.warning(f"Section '{section.title}' has nothing to delete")
        return DeleteResult(section, deleted=False)

    start = delete.range.start_index
    # The surviving newline would otherwise keep the deleted heading's style
    reset = SetParagraphStyle(Range(start, start + 1), NORMAL_TEXT_STYLE, "namedStyleType")
    await client.apply(document.bind([delete, reset]))
    logger.info(f"Deleted section '{section.title}' [{start}-{delete.range.end_index})")
    return DeleteResult(section, deleted=True)


async def search(client: DocsClient, document_id: str, query: str, section_title: str | None = None) -> list[Match]:
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), section_title) if section_title else None
    return search_document(document, query, section)


async def replace(
    client: DocsClient,
    document_id: str,
    find: str,
    replacement: str,
    section_title: str | None = None,
    preview: bool = False,
) -> ReplaceResult:
    """
    Replace every case-insensitive occurrence of `find`.

    With `preview`, nothing is written and before/after context pairs are
    returned instead.
    """
    document = await client.get_document(document_id)
    section = require_section(parse_sections(document), section_title) if section_title else None
    matches = search_document(document, find, section)

    if not matches:
        return ReplaceResult(matches)
    if preview:
        return ReplaceResult(matches, preview_replacements(matches, replacement))

    await client.apply(document.bind(build_replace_operations(matches, replacement)))
    logger.info(f"Replaced {len(matches)} occurrence(s) of {find!r} in {document_id}")
    return ReplaceResult(matches, applied=True)

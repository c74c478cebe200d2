"""
Document Search and Replace

Case-insensitive text search over the paragraphs of a document snapshot,
optionally limited to one section, and the operation script that replaces
every match in a single batch.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.errors import ValidationError
from gdocs.operations import DeleteRange, InsertText, Range, text_length

if TYPE_CHECKING:
    from gdocs.document import Document
    from gdocs.operations import EditOperation
    from gdocs.sections import Section

logger = logging.getLogger(__name__)

# Characters of surrounding text shown on each side of a match
CONTEXT_CHARS = 20


@dataclass(frozen=True)
class Match:
    start_index: int
    end_index: int
    text: str
    context: str
    paragraph_index: int
    # Where `text` starts within `context`
    context_offset: int = 0

    @property
    def range(self) -> Range:
        return Range(self.start_index, self.end_index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startIndex": self.start_index,
            "endIndex": self.end_index,
            "text": self.text,
            "context": self.context,
            "paragraphIndex": self.paragraph_index,
        }


def search_document(document: Document, query: str, section: Section | None = None) -> list[Match]:
    """
    Find every case-insensitive occurrence of `query`.

    Only paragraphs whose start index lies inside `section.section_range`
    are scanned when a section is given. Occurrences do not overlap: the scan
    resumes after the end of each hit.

    Raises:
        ValidationError: If `query` is empty.
    """
    if not query:
        raise ValidationError("Search query cannot be empty")

    bounds = section.section_range if section is not None else None
    # Offsets stay in the paragraph's own coordinates; str.lower() may change lengths
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    matches = []

    for element in document.paragraphs():
        if bounds is not None and not bounds.contains(element.start_index):
            continue

        text = element.plain_text
        for hit in pattern.finditer(text):
            position, end = hit.span()
            context_start = max(0, position - CONTEXT_CHARS)
            context_end = min(len(text), end + CONTEXT_CHARS)
            matches.append(
                Match(
                    start_index=element.index_at(position),
                    end_index=element.index_at(end),
                    text=hit.group(),
                    context=text[context_start:context_end],
                    paragraph_index=element.start_index,
                    context_offset=position - context_start,
                )
            )

    logger.debug(f"Search for {query!r} found {len(matches)} matches")
    return matches


def build_replace_operations(matches: list[Match], replacement: str) -> list[EditOperation]:
    """
    Build one batch that replaces every match with `replacement`.

    Ordering is part of the contract:

    1. All deletions come first, in descending position order, so each
       deletion's range is still valid when it runs.
    2. Insertions follow in ascending position order. Once all deletions have
       run, the `i`-th match starts at its original index minus the lengths
       of the matches before it; each earlier insertion then pushes it right
       by `len(replacement)`.

    `matches` must be non-overlapping, as returned by `search_document`.
    """
    ordered = sorted(matches, key=lambda match: match.start_index)
    operations: list[EditOperation] = [DeleteRange(match.range) for match in reversed(ordered)]

    if replacement:
        replacement_length = text_length(replacement)
        removed = 0
        inserted = 0
        for match in ordered:
            operations.append(InsertText(match.start_index - removed + inserted, replacement))
            removed += match.range.length
            inserted += replacement_length

    return operations


def preview_replacements(matches: list[Match], replacement: str) -> list[tuple[str, str]]:
    """Return `(before, after)` context pairs with the matched text bracketed."""
    previews = []
    for match in matches:
        head = match.context[: match.context_offset]
        tail = match.context[match.context_offset + len(match.text) :]
        previews.append((f"{head}[{match.text}]{tail}", f"{head}[{replacement}]{tail}"))
    return previews

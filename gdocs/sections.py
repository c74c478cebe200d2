"""
Document Section Parsing

Reconstructs the heading hierarchy of a retrieved document. A section is a
heading plus everything up to the next heading of the same or a higher level
(a smaller level number); deeper headings in between belong to it and become
its children in the outline.

Sections are computed from one `Document` snapshot and go stale as soon as the
document is modified. Re-parse after every write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from core.errors import SectionNotFoundError
from gdocs.operations import DeleteRange, Range

if TYPE_CHECKING:
    from gdocs.document import Document, StructuralElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    heading_id: str | None
    range: Range


@dataclass
class Section:
    """
    A heading and the span it governs.

    Attributes:
        heading_range: The heading paragraph itself.
        content_range: From the end of the heading to the section boundary;
            empty when the next boundary immediately follows the heading.
        section_range: From the start of the heading to the section boundary.
        children: Nested subsections (populated by `build_outline` only).
    """

    level: int
    title: str
    heading_id: str | None
    heading_range: Range
    content_range: Range
    section_range: Range
    children: list[Section] = field(default_factory=list)

    def to_dict(self, include_children: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "level": self.level,
            "title": self.title,
            "headingId": self.heading_id,
            "headingStartIndex": self.heading_range.start_index,
            "headingEndIndex": self.heading_range.end_index,
            "contentStartIndex": self.content_range.start_index,
            "contentEndIndex": self.content_range.end_index,
            "sectionStartIndex": self.section_range.start_index,
            "sectionEndIndex": self.section_range.end_index,
        }
        if include_children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def parse_headings(document: Document) -> list[Heading]:
    """Collect every HEADING_1..HEADING_6 paragraph, in document order."""
    headings = []
    for element in document.content:
        level = element.heading_level
        if level is None:
            continue
        headings.append(
            Heading(
                level=level,
                text=element.plain_text,
                heading_id=element.heading_id,
                range=Range(element.start_index, element.end_index),
            )
        )
    return headings


def parse_sections(document: Document) -> list[Section]:
    """
    Compute the flat list of sections, one per heading, in document order.

    The boundary of heading `i` is the start of the first later heading whose
    level is `<=` its own, or the document end when there is none.
    """
    headings = parse_headings(document)
    document_end = document.end_index
    sections = []

    for i, heading in enumerate(headings):
        boundary = document_end
        for following in headings[i + 1 :]:
            if following.level <= heading.level:
                boundary = following.range.start_index
                break

        sections.append(
            Section(
                level=heading.level,
                title=heading.text,
                heading_id=heading.heading_id,
                heading_range=heading.range,
                content_range=Range(heading.range.end_index, boundary),
                section_range=Range(heading.range.start_index, boundary),
            )
        )

    logger.debug(f"Parsed {len(sections)} sections from document {document.document_id}")
    return sections


def build_outline(sections: list[Section]) -> list[Section]:
    """
    Nest a flat section list into a tree.

    Returns copies of the sections; the input list is left untouched.
    """
    outline: list[Section] = []
    stack: list[Section] = []

    for section in sections:
        # Pop until the stack top is a strict ancestor
        while stack and stack[-1].level >= section.level:
            stack.pop()

        node = replace(section, children=[])
        if stack:
            stack[-1].children.append(node)
        else:
            outline.append(node)
        stack.append(node)

    return outline


def format_outline(outline: list[Section], indent: int = 0) -> list[str]:
    """Render an outline as indented `H<level>: <title> [<start>-<end>]` lines."""
    lines = []
    for section in outline:
        prefix = "  " * indent
        span = f"[{section.section_range.start_index}-{section.section_range.end_index}]"
        lines.append(f"{prefix}H{section.level}: {section.title} {span}")
        if section.children:
            lines.extend(format_outline(section.children, indent + 1))
    return lines


def find_section(sections: list[Section], title: str) -> Section | None:
    """First section whose title contains `title`, case-insensitively."""
    needle = title.lower()
    for section in sections:
        if needle in section.title.lower():
            return section
    return None


def require_section(sections: list[Section], title: str) -> Section:
    section = find_section(sections, title)
    if section is None:
        raise SectionNotFoundError(title, [f"{'  ' * (s.level - 1)}{s.title}" for s in sections])
    return section


def section_elements(document: Document, section: Section) -> list[StructuralElement]:
    """Elements that start inside the section's content (the heading excluded)."""
    return [element for element in document.content if section.content_range.contains(element.start_index)]


def format_section_text(document: Document, section: Section) -> str:
    """
    Render a section's content as plain text.

    Blank paragraphs are dropped. Tables are rendered as a `[Table]` line
    followed by one `  a | b | c` line per row.
    """
    lines = []
    for element in section_elements(document, section):
        if element.is_paragraph:
            text = element.plain_text
            if text.strip():
                lines.append(text)
        elif element.is_table:
            lines.append("\n[Table]")
            for row in element.rows:
                cells = []
                for cell in row:
                    paragraph = cell.first_paragraph
                    cells.append(paragraph.text.strip() if paragraph else "")
                lines.append("  " + " | ".join(cells))
            lines.append("")
    return "\n".join(lines)


def delete_section_content_operation(section: Section) -> DeleteRange | None:
    """
    Delete everything under the heading, keeping the heading itself.

    The final newline of the section is kept so the paragraph boundary before
    the next heading survives. Returns None when there is nothing to delete.
    """
    delete_range = Range(section.content_range.start_index, section.content_range.end_index - 1)
    if delete_range.is_empty:
        return None
    return DeleteRange(delete_range)


def delete_section_operation(section: Section) -> DeleteRange:
    """Delete the heading and its content, keeping the final paragraph boundary."""
    return DeleteRange(Range(section.section_range.start_index, section.section_range.end_index - 1))

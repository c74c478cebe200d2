"""
Markdown Token Tree

Adapter that turns markdown-it-py's syntax tree into a small tagged-variant
tree the operation compiler walks. Parsing itself is done by markdown-it-py
(CommonMark plus GFM tables, strikethrough and task lists); this module only
reshapes its output into typed, immutable nodes.

Block nodes:  Heading, Paragraph, ListBlock (of ListItem), CodeBlock, Table
              (of TableCell rows), Blockquote, HorizontalRule, Space.
Inline nodes: Text, Strong, Emphasis, Strikethrough, Link, CodeSpan.

Formatting nodes keep both their raw markup (`text`) and their semantic
content (`children`); `flatten_text()` always prefers the children so markup
never leaks into inserted text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.tasklists import tasklists_plugin

from core.errors import NestingDepthError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Deepest nesting of blocks and inline spans accepted from the parser
MAX_NESTING_DEPTH = 32

# Task list checkbox characters (Unicode ballot box symbols)
CHECKBOX_UNCHECKED = "☐"  # U+2610 BALLOT BOX
CHECKBOX_CHECKED = "☑"  # U+2611 BALLOT BOX WITH CHECK


# =============================================================================
# Inline nodes
# =============================================================================


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Space:
    """A blank line between blocks, or a whitespace-only inline gap."""

    text: str = " "


@dataclass(frozen=True)
class Strong:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Emphasis:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Strikethrough:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Link:
    href: str
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class CodeSpan:
    text: str


Inline = Union[Text, Space, Strong, Emphasis, Strikethrough, Link, CodeSpan]


# =============================================================================
# Block nodes
# =============================================================================


@dataclass(frozen=True)
class Heading:
    level: int
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Paragraph:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class ListItem:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    text: str
    lang: str = ""


@dataclass(frozen=True)
class TableCell:
    children: tuple[Inline, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Table:
    header: tuple[TableCell, ...] = ()
    rows: tuple[tuple[TableCell, ...], ...] = ()


@dataclass(frozen=True)
class Blockquote:
    children: tuple[Block, ...] = ()


@dataclass(frozen=True)
class HorizontalRule:
    text: str = ""


Block = Union[Heading, Paragraph, ListBlock, CodeBlock, Table, Blockquote, HorizontalRule, Space]
Node = Union[Block, Inline, ListItem, TableCell]


def create_parser() -> MarkdownIt:
    """CommonMark parser with GFM tables, strikethrough and task lists."""
    return MarkdownIt("commonmark").enable("table").enable("strikethrough").use(tasklists_plugin)


def parse_markdown(markdown_text: str, md: MarkdownIt | None = None) -> tuple[Block, ...]:
    """
    Parse markdown into a tuple of top-level block nodes.

    A `Space` node is emitted between two blocks separated by one or more
    blank lines in the source.

    Raises:
        NestingDepthError: If blocks or inline spans nest deeper than MAX_NESTING_DEPTH.
    """
    md = md or create_parser()
    root = SyntaxTreeNode(md.parse(markdown_text))
    return _convert_blocks(root.children, depth=1)


def flatten_text(node: Node | Iterable[Node] | None) -> str:
    """
    Reduce a node, or a sequence of nodes, to its visible text.

    Nested children are used when present; a node's own literal text is only
    the fallback for leaves. A `Space` contributes a single space.
    """
    if node is None:
        return ""
    if isinstance(node, (list, tuple)):
        return "".join(flatten_text(child) for child in node)
    if isinstance(node, Space):
        return " "
    if isinstance(node, ListBlock):
        return "".join(flatten_text(item) for item in node.items)
    children = getattr(node, "children", None)
    if children:
        return flatten_text(children)
    return getattr(node, "text", "")


# =============================================================================
# markdown-it tree conversion
# =============================================================================


def _check_depth(depth: int) -> None:
    if depth > MAX_NESTING_DEPTH:
        raise NestingDepthError(MAX_NESTING_DEPTH)


def _convert_blocks(nodes: Iterable[SyntaxTreeNode], depth: int) -> tuple[Block, ...]:
    _check_depth(depth)
    blocks: list[Block] = []
    previous_end: int | None = None

    for node in nodes:
        if node.map and previous_end is not None and node.map[0] > previous_end:
            blocks.append(Space())
        converted = _convert_block(node, depth)
        if converted is not None:
            blocks.extend(converted)
        if node.map:
            previous_end = node.map[1]

    return tuple(blocks)


def _convert_block(node: SyntaxTreeNode, depth: int) -> list[Block] | None:
    logger.debug(f"Block node: type={node.type}, tag={node.tag}")

    if node.type == "heading":
        children = _inline_children(node, depth)
        return [Heading(level=int(node.tag[1]), children=children, text=_raw_text(children))]

    if node.type == "paragraph":
        children = _inline_children(node, depth)
        return [Paragraph(children=children, text=_raw_text(children))]

    if node.type in ("bullet_list", "ordered_list"):
        items = tuple(_list_items(node, depth + 1))
        return [ListBlock(ordered=node.type == "ordered_list", items=items)]

    if node.type in ("fence", "code_block"):
        lang = node.info.strip().split(" ")[0] if node.info else ""
        return [CodeBlock(text=node.content, lang=lang)]

    if node.type == "table":
        return [_convert_table(node, depth + 1)]

    if node.type == "blockquote":
        return [Blockquote(children=_convert_blocks(node.children, depth + 1))]

    if node.type == "hr":
        return [HorizontalRule(text=node.markup)]

    if node.type == "html_block":
        content = node.content.rstrip("\n")
        return [Paragraph(children=(Text(content),), text=content)] if content else None

    logger.warning(f"Unsupported markdown block '{node.type}' skipped")
    return None


def _list_items(node: SyntaxTreeNode, depth: int) -> list[ListItem]:
    """
    Convert list items, lifting nested list items to the same level.

    Each item's paragraphs are joined into one run of inline content separated
    by spaces.
    """
    _check_depth(depth)
    items: list[ListItem] = []
    for item in node.children:
        children: list[Inline] = []
        nested: list[ListItem] = []
        for child in item.children:
            if child.type in ("bullet_list", "ordered_list"):
                nested.extend(_list_items(child, depth + 1))
            elif child.type == "paragraph":
                if children:
                    children.append(Space())
                children.extend(_inline_children(child, depth + 1))
            else:
                logger.debug(f"List item block '{child.type}' flattened to text")
                converted = _convert_block(child, depth + 1) or []
                for block in converted:
                    if children:
                        children.append(Space())
                    children.append(Text(flatten_text(block)))
        item_children = tuple(children)
        items.append(ListItem(children=item_children, text=_raw_text(item_children)))
        if nested:
            logger.debug(f"Lifted {len(nested)} nested list item(s) to parent list level")
            items.extend(nested)
    return items


def _convert_table(node: SyntaxTreeNode, depth: int) -> Table:
    _check_depth(depth)
    header: tuple[TableCell, ...] = ()
    rows: list[tuple[TableCell, ...]] = []
    for section in node.children:
        for row in section.children:
            cells = tuple(_convert_cell(cell, depth + 1) for cell in row.children)
            if section.type == "thead":
                header = cells
            else:
                rows.append(cells)
    return Table(header=header, rows=tuple(rows))


def _convert_cell(node: SyntaxTreeNode, depth: int) -> TableCell:
    children: tuple[Inline, ...] = ()
    for child in node.children:
        if child.type == "inline":
            children = _convert_inlines(child.children, depth + 1)
    return TableCell(children=children, text=_raw_text(children))


def _inline_children(node: SyntaxTreeNode, depth: int) -> tuple[Inline, ...]:
    for child in node.children:
        if child.type == "inline":
            return _convert_inlines(child.children, depth + 1)
    return ()


def _convert_inlines(nodes: Iterable[SyntaxTreeNode], depth: int) -> tuple[Inline, ...]:
    _check_depth(depth)
    result: list[Inline] = []

    for node in nodes:
        if node.type == "text":
            if node.content:
                result.append(Text(node.content))
        elif node.type == "softbreak":
            # Soft line breaks become spaces in Google Docs
            result.append(Space())
        elif node.type == "hardbreak":
            result.append(Text("\n"))
        elif node.type == "code_inline":
            result.append(CodeSpan(node.content))
        elif node.type in ("strong", "em", "s"):
            children = _convert_inlines(node.children, depth + 1)
            raw = node.markup + _raw_text(children) + node.markup
            span_type = {"strong": Strong, "em": Emphasis, "s": Strikethrough}[node.type]
            result.append(span_type(children=children, text=raw))
        elif node.type == "link":
            href = str(node.attrs.get("href", ""))
            children = _convert_inlines(node.children, depth + 1)
            result.append(Link(href=href, children=children, text=f"[{_raw_text(children)}]({href})"))
        elif node.type == "image":
            # Images have no text representation; keep the alt text
            alt = "".join(child.content for child in node.children if child.type == "text")
            if alt:
                result.append(Text(alt))
        elif node.type == "html_inline":
            content = node.content
            # Format: <input class="task-list-item-checkbox" disabled="disabled" type="checkbox">
            if 'class="task-list-item-checkbox"' in content:
                result.append(Text(CHECKBOX_CHECKED if 'checked="checked"' in content else CHECKBOX_UNCHECKED))
            elif content:
                result.append(Text(content))
        else:
            logger.warning(f"Unsupported inline token '{node.type}' skipped")

    return tuple(result)


def _raw_text(nodes: Iterable[Inline]) -> str:
    return "".join(node.text for node in nodes)

"""
Markdown to Google Docs Operation Compiler

Compiles markdown into an `OperationScript`: the ordered `batchUpdate`
operations that write the content into an empty document body starting at
index 1, plus the final cursor and the tables awaiting materialization.

Every block is inserted as its own InsertText at the running cursor, followed
by the style operations for the range it just wrote. Tables cannot be
inserted natively in the same pass (their cell indices are unknown until the
structure exists), so each table becomes a `[TABLE:<rows>x<cols>]` placeholder
paragraph and a `TableSpec`; see `gdocs/tables.py` for the second pass.

Example:
    >>> script = compile_markdown("# Title\\n\\nHello **world**")
    >>> [op.to_request() for op in script.operations][0]
    {'insertText': {'location': {'index': 1}, 'text': 'Title\\n'}}
    >>> script.cursor
    19

Compilation is a pure function: each call builds fresh local state and returns
a frozen script, so the result can be rebased (`gdocs/rebase.py`) and spliced
anywhere in an existing document.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from gdocs.operations import (
    CellData,
    InsertText,
    OperationScript,
    Range,
    SetBullets,
    SetParagraphStyle,
    SetTextStyle,
    TableSpec,
    placeholder_marker,
    style_fields,
    text_length,
)
from gdocs.tokens import (
    Blockquote,
    CodeBlock,
    CodeSpan,
    Emphasis,
    Heading,
    HorizontalRule,
    Link,
    ListBlock,
    Paragraph,
    Space,
    Strikethrough,
    Strong,
    Table,
    create_parser,
    flatten_text,
    parse_markdown,
)

if TYPE_CHECKING:
    from markdown_it import MarkdownIt

    from gdocs.operations import EditOperation
    from gdocs.tokens import Block, Inline

logger = logging.getLogger(__name__)

# Named style mappings for headings (1 -> HEADING_1, etc.)
HEADING_STYLE_MAP: dict[int, str] = {level: f"HEADING_{level}" for level in range(1, 7)}

# Bullet list presets for the Google Docs API
BULLET_PRESET_UNORDERED = "BULLET_DISC_CIRCLE_SQUARE"
BULLET_PRESET_ORDERED = "NUMBERED_DECIMAL_ALPHA_ROMAN"

# Code styling constants
CODE_FONT_FAMILY = "Consolas"
CODE_FONT_SIZE_PT = 10
CODE_BACKGROUND_COLOR = {"red": 0.96, "green": 0.96, "blue": 0.96}  # #f5f5f5

# Blockquote styling constants
BLOCKQUOTE_INDENT_PT = 36
BLOCKQUOTE_BORDER_WIDTH_PT = 3.0
BLOCKQUOTE_BORDER_PADDING_PT = 12.0
BLOCKQUOTE_BORDER_COLOR = {"red": 0.7, "green": 0.7, "blue": 0.7}

# Horizontal rule styling constants
# Google Docs has no native HR, so an empty paragraph with a bottom border stands in
HR_BORDER_WIDTH_PT = 1.0
HR_BORDER_COLOR = {"red": 0.7, "green": 0.7, "blue": 0.7}  # #b3b3b3 light gray
HR_PADDING_BELOW_PT = 6

BOLD_STYLE = {"bold": True}
ITALIC_STYLE = {"italic": True}
STRIKETHROUGH_STYLE = {"strikethrough": True}
INLINE_CODE_STYLE = {
    "weightedFontFamily": {"fontFamily": CODE_FONT_FAMILY},
    "backgroundColor": {"color": {"rgbColor": CODE_BACKGROUND_COLOR}},
}
CODE_BLOCK_STYLE = {
    "weightedFontFamily": {"fontFamily": CODE_FONT_FAMILY},
    "fontSize": {"magnitude": CODE_FONT_SIZE_PT, "unit": "PT"},
    "backgroundColor": {"color": {"rgbColor": CODE_BACKGROUND_COLOR}},
}


def compile_markdown(markdown_text: str, md: MarkdownIt | None = None) -> OperationScript:
    """
    Compile markdown into an operation script starting at index 1.

    Args:
        markdown_text: The Markdown string to convert.
        md: Optional pre-configured markdown-it parser (defaults to
            CommonMark with tables, strikethrough and task lists).

    Returns:
        A frozen OperationScript. Its `cursor` equals 1 plus the length of all
        inserted text, and `tables` lists the placeholders to materialize.
    """
    return compile_blocks(parse_markdown(markdown_text, md or create_parser()))


def compile_blocks(blocks: tuple[Block, ...] | list[Block]) -> OperationScript:
    """Compile already-parsed block nodes into an operation script starting at index 1."""
    compiler = _Compiler()
    for block in blocks:
        compiler.add_block(block)
    script = OperationScript(
        operations=tuple(compiler.operations),
        cursor=compiler.cursor,
        tables=tuple(compiler.tables),
    )
    logger.debug(f"Compiled {len(blocks)} blocks: {len(script.operations)} operations, cursor={script.cursor}")
    return script


class _Compiler:
    """
    Per-call compilation state.

    Attributes:
        operations: Operations emitted so far, in application order.
        cursor: Index where the next insertion goes (1-based, as per Google Docs API).
        tables: TableSpecs recorded for placeholders emitted so far.
    """

    def __init__(self) -> None:
        self.operations: list[EditOperation] = []
        self.cursor: int = 1
        self.tables: list[TableSpec] = []

    def add_block(self, block: Block, quote_level: int = 0) -> None:
        if isinstance(block, Space):
            return
        if isinstance(block, Heading):
            self._add_heading(block)
        elif isinstance(block, Paragraph):
            self._add_paragraph(block)
        elif isinstance(block, ListBlock):
            self._add_list(block)
        elif isinstance(block, CodeBlock):
            self._add_code_block(block)
        elif isinstance(block, Table):
            self._add_table(block)
        elif isinstance(block, Blockquote):
            self._add_blockquote(block, quote_level + 1)
        elif isinstance(block, HorizontalRule):
            self._add_horizontal_rule()
        else:
            logger.warning(f"Unsupported block type: {type(block).__name__}")

    def _insert(self, text: str) -> int:
        """Insert `text` at the cursor and return the index it started at."""
        start = self.cursor
        self.operations.append(InsertText(start, text))
        self.cursor += text_length(text)
        logger.debug(f"Inserted {text!r} at {start}, cursor={self.cursor}")
        return start

    def _add_heading(self, block: Heading) -> None:
        start = self._insert(flatten_text(block.children) + "\n")
        style_range = Range(start, self.cursor - 1)
        if style_range.is_empty:
            logger.debug(f"Empty H{block.level} at {start}, no heading style applied")
        else:
            self.operations.append(
                SetParagraphStyle(style_range, {"namedStyleType": HEADING_STYLE_MAP[block.level]}, "namedStyleType")
            )
        self._apply_inline_formatting(block.children, start)

    def _add_paragraph(self, block: Paragraph) -> None:
        start = self._insert(flatten_text(block.children) + "\n")
        self._apply_inline_formatting(block.children, start)

    def _add_list(self, block: ListBlock) -> None:
        preset = BULLET_PRESET_ORDERED if block.ordered else BULLET_PRESET_UNORDERED
        for item in block.items:
            start = self._insert(flatten_text(item.children) + "\n")
            self.operations.append(SetBullets(Range(start, self.cursor - 1), preset))
            self._apply_inline_formatting(item.children, start)

    def _add_code_block(self, block: CodeBlock) -> None:
        # markdown-it keeps the newline that closes the last code line
        content = block.text[:-1] if block.text.endswith("\n") else block.text
        # One trailing blank line separates the block from what follows
        start = self._insert(content + "\n\n")
        if content:
            self._style(Range(start, self.cursor - 2), CODE_BLOCK_STYLE)

    def _add_table(self, block: Table) -> None:
        rows = len(block.rows) + 1
        cols = len(block.header)
        marker = placeholder_marker(rows, cols)
        start = self._insert(marker + "\n")

        cell_data = [CellData(0, col, flatten_text(cell.children), bold=True) for col, cell in enumerate(block.header)]
        for row_number, row in enumerate(block.rows, start=1):
            for col in range(cols):
                text = flatten_text(row[col].children) if col < len(row) else ""
                cell_data.append(CellData(row_number, col, text))

        self.tables.append(
            TableSpec(
                placeholder_range=Range(start, start + text_length(marker)),
                rows=rows,
                cols=cols,
                cell_data=tuple(cell_data),
            )
        )
        logger.debug(f"Table placeholder {marker} at {start}, {len(cell_data)} cells recorded")

    def _add_blockquote(self, block: Blockquote, quote_level: int) -> None:
        for child in block.children:
            start = self.cursor
            self.add_block(child, quote_level)
            # A nested quote styles its own paragraphs at the deeper level
            if isinstance(child, Blockquote) or self.cursor == start:
                continue
            self._apply_blockquote_style(Range(start, self.cursor), quote_level)

    def _apply_blockquote_style(self, quote_range: Range, quote_level: int) -> None:
        margin_pt = BLOCKQUOTE_INDENT_PT * quote_level
        self.operations.append(
            SetParagraphStyle(
                quote_range,
                {
                    "indentStart": {"magnitude": margin_pt, "unit": "PT"},
                    "indentFirstLine": {"magnitude": margin_pt, "unit": "PT"},
                    "borderLeft": {
                        "color": {"color": {"rgbColor": BLOCKQUOTE_BORDER_COLOR}},
                        "width": {"magnitude": BLOCKQUOTE_BORDER_WIDTH_PT, "unit": "PT"},
                        "padding": {"magnitude": BLOCKQUOTE_BORDER_PADDING_PT, "unit": "PT"},
                        "dashStyle": "SOLID",
                    },
                },
                "indentStart,indentFirstLine,borderLeft",
            )
        )
        self._style(quote_range, ITALIC_STYLE)
        logger.debug(f"Applied blockquote style: margin={margin_pt}PT, range={quote_range}")

    def _add_horizontal_rule(self) -> None:
        start = self._insert("\n")
        self.operations.append(
            SetParagraphStyle(
                Range(start, self.cursor),
                {
                    "borderBottom": {
                        "color": {"color": {"rgbColor": HR_BORDER_COLOR}},
                        "width": {"magnitude": HR_BORDER_WIDTH_PT, "unit": "PT"},
                        "dashStyle": "SOLID",
                        "padding": {"magnitude": HR_PADDING_BELOW_PT, "unit": "PT"},
                    },
                },
                "borderBottom",
            )
        )

    def _apply_inline_formatting(self, children: tuple[Inline, ...], start: int) -> None:
        """
        Emit text styles for the inline spans written at `start`.

        Each child's length is the length of its flattened text, not of its
        markup. Children are visited even when they carry no style of their
        own so that nested spans (a link inside bold text) get every style.
        """
        offset = 0
        for child in children:
            length = text_length(flatten_text(child))
            child_start = start + offset
            child_range = Range(child_start, child_start + length)

            style = _inline_style(child)
            if style is not None and not child_range.is_empty:
                self._style(child_range, style)

            nested = getattr(child, "children", None)
            if nested:
                self._apply_inline_formatting(nested, child_start)

            offset += length

    def _style(self, style_range: Range, style: dict[str, Any]) -> None:
        self.operations.append(SetTextStyle(style_range, style, style_fields(style)))


def _inline_style(node: Inline) -> dict[str, Any] | None:
    if isinstance(node, Strong):
        return BOLD_STYLE
    if isinstance(node, Emphasis):
        return ITALIC_STYLE
    if isinstance(node, Strikethrough):
        return STRIKETHROUGH_STYLE
    if isinstance(node, Link):
        return {"link": {"url": node.href}}
    if isinstance(node, CodeSpan):
        return INLINE_CODE_STYLE
    return None

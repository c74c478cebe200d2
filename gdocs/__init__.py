"""
Google Docs Section Editing Package

Markdown compilation to Docs `batchUpdate` operations, table materialization,
heading-based section parsing, rebasing and search.
"""

from gdocs.client import DocsClient, build_docs_service
from gdocs.document import BoundScript, Document, StructuralElement
from gdocs.markdown_parser import compile_blocks, compile_markdown
from gdocs.operations import OperationScript, TableSpec
from gdocs.rebase import rebase, shift_script
from gdocs.search import Match, build_replace_operations, search_document
from gdocs.sections import Section, build_outline, find_section, parse_sections
from gdocs.tables import materialize_tables
from gdocs.tokens import flatten_text, parse_markdown

__all__ = [
    "BoundScript",
    "build_docs_service",
    "build_outline",
    "build_replace_operations",
    "compile_blocks",
    "compile_markdown",
    "Document",
    "DocsClient",
    "find_section",
    "flatten_text",
    "Match",
    "materialize_tables",
    "OperationScript",
    "parse_markdown",
    "parse_sections",
    "rebase",
    "search_document",
    "Section",
    "shift_script",
    "StructuralElement",
    "TableSpec",
]

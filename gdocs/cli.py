"""
gdoc: Google Docs section editing from the command line.

Usage:
  gdoc <command> [options]

Commands:
  documents.get          Print a document's raw JSON.
  documents.create       Create an empty document.
  documents.batchUpdate  Send raw batchUpdate requests.
  markdown               Write a markdown file into a new or existing document.
  list-sections          Show the heading outline.
  read-section           Print one section's content.
  update-section         Replace a section's content with markdown.
  append-to-section      Add markdown at the end of a section.
  insert-section         Add a new section before or after another.
  delete-section         Remove a section (requires --confirm).
  search                 Find text, optionally within a section.
  replace                Find and replace text (--preview for a dry run).
  auth                   Authenticate with Google (OAuth2).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys

from rich.console import Console
from rich.markup import escape

from auth.credential_store import TokenFileStore
from auth.google_auth import check_client_secrets, get_credentials, run_oauth_flow
from core.config import get_config
from core.errors import GdocError, ValidationError, format_error
from core.utils import read_text_file
from gdocs import workflows
from gdocs.client import DocsClient, build_docs_service, document_url
from gdocs.sections import format_outline

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

RULE = "─" * 60


def create_client() -> DocsClient:
    return DocsClient(build_docs_service(get_credentials()))


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else get_config().get_log_level()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _output(data) -> None:
    console.print_json(data=data)


def _parse_json(value: str):
    """Parse inline JSON, or JSON from a file when `value` is `@path`."""
    text = read_text_file(value[1:]) if value.startswith("@") else value
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e


# ---------------------------------------------------------------------------
# Raw API commands
# ---------------------------------------------------------------------------


async def _documents_get(args: argparse.Namespace, client: DocsClient) -> int:
    _output(await client.get_document_data(args.documentId))
    return 0


async def _documents_create(args: argparse.Namespace, client: DocsClient) -> int:
    _output(await client.create_document(args.title))
    return 0


async def _documents_batch_update(args: argparse.Namespace, client: DocsClient) -> int:
    requests = _parse_json(args.requests)
    if not isinstance(requests, list):
        raise ValidationError("--requests must be a JSON array")
    write_control = _parse_json(args.writeControl) if args.writeControl else None
    _output(await client.batch_update_requests(args.documentId, requests, write_control) or {})
    return 0


# ---------------------------------------------------------------------------
# Markdown and section commands
# ---------------------------------------------------------------------------


async def _markdown(args: argparse.Namespace, client: DocsClient) -> int:
    markdown_text = read_text_file(args.file)
    title = args.title or os.path.splitext(os.path.basename(args.file))[0]
    result = await workflows.markdown_to_document(client, markdown_text, args.docId, title)
    _output({**result.to_dict(), "message": "Markdown converted to Google Doc"})
    return 0


async def _list_sections(args: argparse.Namespace, client: DocsClient) -> int:
    document, outline = await workflows.list_sections(client, args.documentId)
    if args.json:
        _output([section.to_dict() for section in outline])
        return 0
    console.print(f"Document: {escape(document.title)}")
    console.print()
    for line in format_outline(outline):
        console.print(escape(line))
    return 0


async def _read_section(args: argparse.Namespace, client: DocsClient) -> int:
    section, content = await workflows.read_section(client, args.documentId, args.title)
    if args.json:
        _output({"section": section.to_dict(include_children=False), "content": content})
        return 0
    console.print(f"Section: {escape(section.title)} (H{section.level})")
    console.print(f"Range: {section.section_range.start_index}-{section.section_range.end_index}")
    console.print()
    console.print("Content:")
    console.print(RULE)
    console.print(escape(content))
    console.print(RULE)
    return 0


async def _update_section(args: argparse.Namespace, client: DocsClient) -> int:
    markdown_text = read_text_file(args.file)
    result = await workflows.update_section(client, args.documentId, args.title, markdown_text)
    console.print(f'[green]✓ Section "{escape(result.section)}" updated successfully[/green]')
    console.print(f"View: {result.url}")
    return 0


async def _append_to_section(args: argparse.Namespace, client: DocsClient) -> int:
    markdown_text = read_text_file(args.file)
    result = await workflows.append_to_section(client, args.documentId, args.title, markdown_text)
    console.print(f'[green]✓ Content appended to "{escape(result.section)}"[/green]')
    if result.tables:
        console.print(f"[green]✓ {result.tables} table(s) added[/green]")
    return 0


async def _insert_section(args: argparse.Namespace, client: DocsClient) -> int:
    markdown_text = read_text_file(args.file)
    result = await workflows.insert_section(
        client,
        args.documentId,
        args.title,
        args.level,
        markdown_text,
        before=args.before,
        after=args.after,
    )
    console.print(f'[green]✓ Section "{escape(result.section)}" inserted[/green]')
    return 0


async def _delete_section(args: argparse.Namespace, client: DocsClient) -> int:
    result = await workflows.delete_section(client, args.documentId, args.title, confirm=args.confirm)
    section = result.section
    console.print(f"Section to delete: {escape(section.title)} (H{section.level})")
    console.print(f"Range: {section.section_range.start_index}-{section.section_range.end_index}")
    if not args.confirm:
        err_console.print()
        err_console.print("[yellow]This will permanently delete the section.[/yellow]")
        err_console.print("Add --confirm flag to proceed.")
        return 1
    if result.deleted:
        console.print(f'[green]✓ Section "{escape(section.title)}" deleted[/green]')
    return 0


async def _search(args: argparse.Namespace, client: DocsClient) -> int:
    matches = await workflows.search(client, args.documentId, args.query, args.section)
    if args.json:
        _output([match.to_dict() for match in matches])
        return 0
    if not matches:
        console.print(f'No matches found for "{escape(args.query)}"')
        return 0
    console.print(f'Found {len(matches)} match(es) for "{escape(args.query)}"')
    console.print()
    for number, match in enumerate(matches, start=1):
        console.print(f"{number}. [{match.start_index}-{match.end_index}]", markup=False)
        console.print(f"   ...{match.context}...", markup=False)
        console.print()
    return 0


async def _replace(args: argparse.Namespace, client: DocsClient) -> int:
    result = await workflows.replace(
        client, args.documentId, args.find, args.replace, section_title=args.section, preview=args.preview
    )
    if not result.matches:
        console.print(f'No matches found for "{escape(args.find)}"')
        return 0

    console.print(f"Found {len(result.matches)} match(es)")
    console.print()
    if args.preview:
        console.print("Preview of changes:")
        console.print()
        for number, (before, after) in enumerate(result.previews, start=1):
            console.print(f"{number}. Before: ...{before}...", markup=False)
            console.print(f"   After:  ...{after}...", markup=False)
            console.print()
        console.print("Run without --preview to apply changes")
    else:
        console.print(f"[green]✓ Replaced {len(result.matches)} occurrence(s)[/green]")
    return 0


def _auth(args: argparse.Namespace) -> int:
    config = get_config()
    check_client_secrets(config)
    if TokenFileStore(config.token_path).delete():
        console.print("[green]✓ Removed existing OAuth2 token[/green]")

    console.print("Starting OAuth2 authentication...")
    console.print()

    def show_url(url: str) -> None:
        console.print("If the browser doesn't open, visit:")
        console.print()
        console.print(url, markup=False, soft_wrap=True)
        console.print()
        console.print("Waiting for authorization...")

    run_oauth_flow(config, open_browser=not args.no_browser, show_url=show_url)
    console.print("[green]✓ Authentication complete![/green]")
    console.print(f"[green]✓ Tokens saved to: {escape(config.token_path)}[/green]")
    console.print()
    console.print("You can now use gdoc commands.")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_document_id(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--documentId", required=True, help="Document ID")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdoc",
        description="Direct Google Docs API CLI with section-level editing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(title="commands", metavar="<command>", dest="command")
    subparsers.required = True

    p = subparsers.add_parser("documents.get", help="Get a document by ID")
    _add_document_id(p)
    p.set_defaults(handler=_documents_get)

    p = subparsers.add_parser("documents.create", help="Create a new document")
    p.add_argument("--title", default="Untitled", help="Document title")
    p.set_defaults(handler=_documents_create)

    p = subparsers.add_parser("documents.batchUpdate", help="Batch update a document")
    _add_document_id(p)
    p.add_argument("--requests", required=True, help="JSON array of requests or @file.json")
    p.add_argument("--writeControl", help="WriteControl JSON (optional)")
    p.set_defaults(handler=_documents_batch_update)

    p = subparsers.add_parser("markdown", help="Convert markdown file to Google Doc")
    p.add_argument("-f", "--file", required=True, help="Markdown file path")
    p.add_argument("-d", "--docId", help="Document ID to update (creates new if omitted)")
    p.add_argument("-t", "--title", help="Document title (for new documents)")
    p.set_defaults(handler=_markdown)

    p = subparsers.add_parser("list-sections", help="List all sections in a document (outline view)")
    _add_document_id(p)
    p.add_argument("--json", action="store_true", help="Output as JSON")
    p.set_defaults(handler=_list_sections)

    p = subparsers.add_parser("read-section", help="Read content from a specific section")
    _add_document_id(p)
    p.add_argument("--title", required=True, help="Section title (partial match, case-insensitive)")
    p.add_argument("--json", action="store_true", help="Output raw section data as JSON")
    p.set_defaults(handler=_read_section)

    p = subparsers.add_parser("update-section", help="Update a section with new content from markdown")
    _add_document_id(p)
    p.add_argument("--title", required=True, help="Section title to update")
    p.add_argument("-f", "--file", required=True, help="Markdown file with new content")
    p.set_defaults(handler=_update_section)

    p = subparsers.add_parser("append-to-section", help="Append content to the end of a section")
    _add_document_id(p)
    p.add_argument("--title", required=True, help="Section title to append to")
    p.add_argument("-f", "--file", required=True, help="Markdown file with content to append")
    p.set_defaults(handler=_append_to_section)

    p = subparsers.add_parser("delete-section", help="Delete an entire section (heading + content)")
    _add_document_id(p)
    p.add_argument("--title", required=True, help="Section title to delete")
    p.add_argument("--confirm", action="store_true", help="Actually delete the section")
    p.set_defaults(handler=_delete_section)

    p = subparsers.add_parser("insert-section", help="Insert a new section before or after an existing section")
    _add_document_id(p)
    p.add_argument("--title", required=True, help="New section title")
    p.add_argument("--level", required=True, type=int, choices=range(1, 7), help="Heading level (1-6)")
    p.add_argument("-f", "--file", required=True, help="Markdown file with section content")
    position = p.add_mutually_exclusive_group(required=True)
    position.add_argument("--before", help="Insert before this section")
    position.add_argument("--after", help="Insert after this section")
    p.set_defaults(handler=_insert_section)

    p = subparsers.add_parser("search", help="Search for text in document")
    _add_document_id(p)
    p.add_argument("--query", required=True, help="Text to search for")
    p.add_argument("--section", help="Limit search to specific section")
    p.add_argument("--json", action="store_true", help="Output as JSON")
    p.set_defaults(handler=_search)

    p = subparsers.add_parser("replace", help="Find and replace text in document")
    _add_document_id(p)
    p.add_argument("--find", required=True, help="Text to find")
    p.add_argument("--replace", required=True, help="Replacement text")
    p.add_argument("--section", help="Limit replacement to specific section")
    p.add_argument("--preview", action="store_true", help="Preview changes without applying")
    p.set_defaults(handler=_replace)

    p = subparsers.add_parser("auth", help="Authenticate with OAuth2")
    p.add_argument("--no-browser", action="store_true", help="Print the consent URL without opening a browser")
    p.set_defaults(handler=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.command == "auth":
            return _auth(args)
        client = create_client()
        return asyncio.run(args.handler(args, client))
    except GdocError as e:
        err_console.print(f"[red]Error:[/red] {escape(format_error(args.command, e))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

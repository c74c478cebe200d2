"""Shared pytest fixtures for gdoc tests."""

import tempfile
from unittest.mock import MagicMock

import pytest

from core.config import reset_config


class DocBuilder:
    """
    Builds `documents.get` responses with consistent indices.

    Content is laid out from index 1 after a leading section break, the way
    the Docs API returns a body.
    """

    def __init__(self, document_id: str = "doc123", title: str = "Test Doc", revision_id: str = "rev1"):
        self.document_id = document_id
        self.title = title
        self.revision_id = revision_id
        self.content = [{"startIndex": 0, "endIndex": 1, "sectionBreak": {}}]
        self.cursor = 1

    def paragraph(self, text: str, style: str = "NORMAL_TEXT", heading_id: str | None = None) -> "DocBuilder":
        self.content.append(self._paragraph(self.cursor, text, style, heading_id))
        self.cursor += len(text) + 1
        return self

    def heading(self, text: str, level: int = 1) -> "DocBuilder":
        return self.paragraph(text, f"HEADING_{level}", heading_id=f"h.{len(self.content)}")

    def table(self, rows: list[list[str]]) -> "DocBuilder":
        start = self.cursor
        cursor = start + 1
        table_rows = []
        for row in rows:
            row_start = cursor
            cursor += 1
            cells = []
            for text in row:
                cell_start = cursor
                cursor += 1
                paragraph = self._paragraph(cursor, text, "NORMAL_TEXT", None)
                cursor += len(text) + 1
                cells.append({"startIndex": cell_start, "endIndex": cursor, "content": [paragraph]})
            table_rows.append({"startIndex": row_start, "endIndex": cursor, "tableCells": cells})
        self.cursor = cursor + 1
        self.content.append(
            {
                "startIndex": start,
                "endIndex": self.cursor,
                "table": {"rows": len(rows), "columns": len(rows[0]) if rows else 0, "tableRows": table_rows},
            }
        )
        return self

    def build(self) -> dict:
        return {
            "documentId": self.document_id,
            "title": self.title,
            "revisionId": self.revision_id,
            "body": {"content": list(self.content)},
        }

    @staticmethod
    def _paragraph(start: int, text: str, style: str, heading_id: str | None) -> dict:
        content = text + "\n"
        paragraph_style = {"namedStyleType": style}
        if heading_id:
            paragraph_style["headingId"] = heading_id
        return {
            "startIndex": start,
            "endIndex": start + len(content),
            "paragraph": {
                "elements": [{"startIndex": start, "endIndex": start + len(content), "textRun": {"content": content}}],
                "paragraphStyle": paragraph_style,
            },
        }


@pytest.fixture
def doc_builder():
    """Factory for DocBuilder instances."""
    return DocBuilder


@pytest.fixture
def mock_docs_service():
    """Create a mock Google Docs service; set `get` responses via `execute.side_effect`."""
    service = MagicMock()
    service.documents.return_value.batchUpdate.return_value.execute.return_value = {"replies": []}
    service.documents.return_value.create.return_value.execute.return_value = {
        "documentId": "new-doc",
        "title": "Untitled",
    }
    return service


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def env_override(monkeypatch):
    """Helper to override environment variables."""

    def _override(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)

    return _override


@pytest.fixture(autouse=True)
def fresh_config():
    """Make every test read configuration from its own environment."""
    reset_config()
    yield
    reset_config()

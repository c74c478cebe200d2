"""
Google Docs API Client

Thin async wrapper over a `googleapiclient` Docs v1 service. Blocking
`execute()` calls run in a worker thread, HttpErrors are converted to
`core.errors.APIError` subclasses by `handle_http_errors`, and reads are
retried on transient SSL failures. Batches are never retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from googleapiclient.discovery import build

from core.utils import handle_http_errors, validate_document_id
from gdocs.document import BoundScript, Document
from gdocs.operations import to_requests

if TYPE_CHECKING:
    from google.oauth2.credentials import Credentials

logger = logging.getLogger(__name__)


def document_url(document_id: str) -> str:
    return f"https://docs.google.com/document/d/{document_id}/edit"


def build_docs_service(credentials: Credentials) -> Any:
    """Build a Docs v1 service for the given credentials."""
    return build("docs", "v1", credentials=credentials, cache_discovery=False)


class DocsClient:
    """
    Retrieval and batch-apply endpoints for one Docs service.

    Callers must not issue two batches for the same document concurrently;
    every method awaits its request before returning.
    """

    def __init__(self, service: Any):
        self.service = service

    @handle_http_errors("documents.get", is_read_only=True)
    async def get_document_data(self, document_id: str) -> dict[str, Any]:
        """Raw `documents.get` response."""
        document_id = validate_document_id(document_id)
        return await asyncio.to_thread(self.service.documents().get(documentId=document_id).execute)

    async def get_document(self, document_id: str) -> Document:
        """Retrieve a fresh snapshot of the document."""
        return Document.from_api(await self.get_document_data(document_id))

    @handle_http_errors("documents.create")
    async def create_document(self, title: str) -> dict[str, Any]:
        doc = await asyncio.to_thread(self.service.documents().create(body={"title": title}).execute)
        logger.info(f"Created Google Doc '{title}' (ID: {doc.get('documentId')})")
        return doc

    @handle_http_errors("documents.batchUpdate")
    async def batch_update_requests(
        self,
        document_id: str,
        requests: list[dict[str, Any]],
        write_control: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Send raw requests as one atomic `batchUpdate`.

        Returns the API response, or None when `requests` is empty (nothing is sent).
        """
        if not requests:
            logger.debug(f"Skipping empty batch for document {document_id}")
            return None

        document_id = validate_document_id(document_id)
        body: dict[str, Any] = {"requests": requests}
        if write_control:
            body["writeControl"] = write_control

        logger.debug(f"batchUpdate {document_id}: {len(requests)} requests")
        return await asyncio.to_thread(
            self.service.documents().batchUpdate(documentId=document_id, body=body).execute
        )

    async def batch_update(
        self,
        document_id: str,
        operations,
        required_revision_id: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply typed operations in one batch, optionally pinned to a revision."""
        write_control = {"requiredRevisionId": required_revision_id} if required_revision_id else None
        return await self.batch_update_requests(document_id, to_requests(operations), write_control)

    async def apply(self, script: BoundScript) -> dict[str, Any] | None:
        """Apply operations computed from a snapshot; the API rejects them if the document has since changed."""
        return await self.batch_update(script.document_id, script.operations, script.revision_id)

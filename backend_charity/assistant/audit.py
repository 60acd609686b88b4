"""
Charity document audit: content address -> PDF text -> assistant verdict.

A document that cannot be fetched or parsed fails with a typed error and
the assistant is never called.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any, Protocol

import httpx
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from backend_charity.config.settings import DEFAULT_DOCUMENT_TIMEOUT_SEC
from backend_charity.core.exceptions import (
    DocumentExtractionError,
    DocumentFetchError,
    InputValidationError,
)
from backend_charity.ledger.decoder import DEFAULT_IPFS_GATEWAY, resolve_content_url
from backend_charity.logging import get_logger

logger = get_logger(__name__)

# characters of document text sent to the model
AUDIT_TEXT_LIMIT = 4000


class DocumentAssistant(Protocol):
    async def audit_document(self, charity_name: str, document_text: str) -> dict[str, Any]: ...


def extract_pdf_text(data: bytes) -> str:
    """Text of every page, blank pages skipped."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as e:
        raise DocumentExtractionError(f"Could not read PDF: {e}") from e
    return "\n\n".join(p for p in pages if p)


class DocumentAuditor:
    def __init__(
        self,
        assistant: DocumentAssistant,
        *,
        gateway: str = DEFAULT_IPFS_GATEWAY,
        timeout_sec: float = DEFAULT_DOCUMENT_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            assistant: Produces the verdict (AssistantClient).
            gateway: Content-address gateway prefix.
            timeout_sec: Bound on the whole document download.
            transport: Optional httpx transport (httpx.MockTransport in tests).
        """
        self._assistant = assistant
        self._gateway = gateway
        self._timeout_sec = timeout_sec
        self._transport = transport

    def document_url(self, ipfs_hash: str) -> str:
        return resolve_content_url(ipfs_hash, gateway=self._gateway)

    async def fetch_document(self, ipfs_hash: str) -> bytes:
        url = self.document_url(ipfs_hash)
        logger.info("audit_document_fetch", url=url)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_sec),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = await asyncio.wait_for(client.get(url), timeout=self._timeout_sec)
                resp.raise_for_status()
                return resp.content
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.warning("audit_document_fetch_failed", url=url, error=str(e) or type(e).__name__)
            raise DocumentFetchError(f"Could not fetch document {ipfs_hash}") from e

    async def verify(self, ipfs_hash: str, charity_name: str) -> dict[str, Any]:
        """
        Audit the registration document of charity_name.

        Raises:
            InputValidationError: ipfs_hash missing.
            DocumentFetchError / DocumentExtractionError: document unusable.
            AssistantError: the model call failed.
        """
        if not ipfs_hash or not ipfs_hash.strip():
            raise InputValidationError("Missing IPFS hash")
        data = await self.fetch_document(ipfs_hash.strip())
        text = extract_pdf_text(data)
        logger.info("audit_document_extracted", charity_name=charity_name, chars=len(text))
        verdict = await self._assistant.audit_document(charity_name or "", text[:AUDIT_TEXT_LIMIT])
        logger.info("audit_completed", charity_name=charity_name, score=verdict.get("score"))
        return verdict

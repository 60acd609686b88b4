"""
DocumentAuditor: gateway fetch, PDF extraction, verdict passthrough.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from backend_charity.assistant.audit import AUDIT_TEXT_LIMIT, DocumentAuditor, extract_pdf_text
from backend_charity.core.exceptions import (
    DocumentExtractionError,
    DocumentFetchError,
    InputValidationError,
)

GATEWAY = "https://gw.test/ipfs/"


def make_pdf(text: str) -> bytes:
    """Single-page PDF showing text in Helvetica (letters and spaces only)."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


class RecordingAssistant:
    def __init__(self, verdict=None):
        self.verdict = verdict or {"is_valid": True, "score": 88, "summary": "Looks legitimate", "reason": "ok"}
        self.calls = []

    async def audit_document(self, charity_name, document_text):
        self.calls.append((charity_name, document_text))
        return self.verdict


def auditor_for(handler, assistant, **kwargs):
    return DocumentAuditor(assistant, gateway=GATEWAY, transport=httpx.MockTransport(handler), **kwargs)


def test_extract_pdf_text():
    assert "Hope Fund license" in extract_pdf_text(make_pdf("Hope Fund license"))


def test_extract_rejects_non_pdf():
    with pytest.raises(DocumentExtractionError):
        extract_pdf_text(b"<html>not a pdf</html>")


def test_verify_returns_verdict_unmodified_and_truncates_text():
    requested = []
    pdf = make_pdf("charity " * 700)

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, content=pdf)

    assistant = RecordingAssistant()
    verdict = asyncio.run(auditor_for(handler, assistant).verify(" QmLegal ", "Hope Fund"))
    assert verdict is assistant.verdict
    assert requested == [f"{GATEWAY}QmLegal"]
    name, text = assistant.calls[0]
    assert name == "Hope Fund"
    assert len(text) == AUDIT_TEXT_LIMIT
    assert text.startswith("charity charity")


def test_missing_hash_is_rejected_before_fetch():
    def handler(request):
        raise AssertionError("no fetch expected")

    assistant = RecordingAssistant()
    with pytest.raises(InputValidationError, match="Missing IPFS hash"):
        asyncio.run(auditor_for(handler, assistant).verify("  ", "Hope"))
    assert assistant.calls == []


@pytest.mark.parametrize("status", [404, 502])
def test_gateway_error_status_is_fetch_error(status):
    assistant = RecordingAssistant()
    auditor = auditor_for(lambda request: httpx.Response(status), assistant)
    with pytest.raises(DocumentFetchError):
        asyncio.run(auditor.verify("QmLegal", "Hope"))
    assert assistant.calls == []


def test_gateway_timeout_is_fetch_error():
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"%PDF")

    assistant = RecordingAssistant()
    auditor = auditor_for(slow, assistant, timeout_sec=0.05)
    with pytest.raises(DocumentFetchError):
        asyncio.run(auditor.verify("QmLegal", "Hope"))
    assert assistant.calls == []


def test_unparseable_document_never_reaches_assistant():
    assistant = RecordingAssistant()
    auditor = auditor_for(lambda request: httpx.Response(200, content=b"garbage"), assistant)
    with pytest.raises(DocumentExtractionError):
        asyncio.run(auditor.verify("QmLegal", "Hope"))
    assert assistant.calls == []


def test_document_url_accepts_full_urls():
    auditor = DocumentAuditor(RecordingAssistant(), gateway=GATEWAY)
    assert auditor.document_url("ipfs://QmX") == f"{GATEWAY}QmX"
    assert auditor.document_url("https://files.example/doc.pdf") == "https://files.example/doc.pdf"

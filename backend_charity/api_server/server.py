"""
FastAPI server: assistant proxy, document audit and ledger read replica.

Routes:
- GET /                          liveness text
- GET /health                    configuration and sync status
- POST /api/chat                 guardian chat (or quick description when type=generate_description)
- POST /api/generate-description item description from optional fields
- POST /api/verify-charity       AI audit of a charity's registration PDF
- GET /api/auctions              live auctions (shared poller snapshot)
- GET /api/charities             registered charities (shared poller snapshot)
- GET /api/proposals             pending disbursement proposals (shared poller snapshot)
- GET /api/auctions/{id}         auction detail and recent bids, read on demand

Upstream failures are logged and answered with fixed messages; no stack
trace reaches the client.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from backend_charity import __version__
from backend_charity.assistant.audit import DocumentAuditor
from backend_charity.assistant.llm import AssistantClient
from backend_charity.config.settings import ServerSettings, load_deployment_config, load_server_settings
from backend_charity.core.exceptions import (
    AssistantError,
    DocumentExtractionError,
    DocumentFetchError,
    InputValidationError,
    LedgerError,
)
from backend_charity.ledger.client import SuiLedgerReader
from backend_charity.logging import get_logger
from backend_charity.sync.hub import SyncHub
from backend_charity.sync.resources import LedgerViews
from backend_charity.view_models.builder import filter_auctions, filter_charities

logger = get_logger(__name__)

LIVENESS_TEXT = "SUI CHARITY AUCTION AI BACKEND IS LIVE 💙"
CHAT_ERROR = "The assistant is busy, please try again in a few seconds 💙"
DESCRIPTION_ERROR = "Could not generate a description right now."
MISSING_HASH_ERROR = "Missing IPFS hash"
EXTRACTION_ERROR = "PDF extraction failed"
EXTRACTION_SUMMARY = "The system could not read the PDF document. Please check the file format on IPFS."
AUDIT_ERROR = "AI audit failed"
AUDIT_SUMMARY = "AI connection or data processing error."
NOT_SYNCED_ERROR = "Ledger data is not available yet"
SYNC_DISABLED_ERROR = "Ledger sync is disabled"

# The server keeps list resources warm; screens fetch them on mount instead
SERVER_LIST_INTERVAL_SEC = 30.0
SERVED_RESOURCES = ("auctions", "charities", "proposals")


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------


class ChatTurn(BaseModel):
    """History entry; turns without a known role or content are dropped later."""

    role: str | None = None
    content: str | None = None


class ChatRequest(BaseModel):
    """POST /api/chat body. The message is forwarded as-is, even when empty."""

    message: str | None = ""
    history: list[ChatTurn] = Field(default_factory=list)
    type: str | None = None


class DescriptionRequest(BaseModel):
    """POST /api/generate-description body; every field falls back to fixed text."""

    itemName: str | None = None
    story: str | None = None
    cause: str | None = None
    donorName: str | None = None


class VerifyCharityRequest(BaseModel):
    """POST /api/verify-charity body."""

    ipfsHash: str | None = None
    charityName: str | None = None


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


# -----------------------------------------------------------------------------
# Lifespan: shared pollers for the read replica
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Subscribe the served list resources on startup; stop every poller on shutdown."""
    state = app.state
    subscriptions = []
    if state.hub is not None and state.views is not None:
        for kind in SERVED_RESOURCES:
            spec = state.views.resource(kind)
            sub = await state.hub.subscribe(
                spec.key,
                spec.fetch,
                interval_sec=spec.interval_sec or SERVER_LIST_INTERVAL_SEC,
            )
            subscriptions.append(sub)
        logger.info("api_ledger_sync_started", resources=[s.key for s in subscriptions])

    yield

    for sub in subscriptions:
        await sub.cancel()
    if state.hub is not None:
        await state.hub.aclose()
    if state.owned_reader is not None:
        await state.owned_reader.aclose()
    logger.info("api_shutdown_complete")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def liveness() -> str:
    return LIVENESS_TEXT


@router.get("/health")
def health(request: Request) -> dict[str, Any]:
    """Liveness plus the state of every running poller."""
    state = request.app.state
    resources: dict[str, Any] = {}
    if state.hub is not None:
        for key in state.hub.keys:
            scheduler = state.hub.scheduler(key)
            if scheduler is None:
                continue
            snap = scheduler.snapshot
            resources[key] = {
                "state": scheduler.state.value,
                "sequence": snap.sequence if snap else None,
                "fetched_at": snap.fetched_at if snap else None,
                "error": str(scheduler.last_error) if scheduler.last_error else None,
            }
    return {
        "status": "ok",
        "version": __version__,
        "model": state.settings.model_name,
        "ledger_sync": state.hub is not None,
        "resources": resources,
    }


@router.post("/api/chat")
async def chat(body: ChatRequest, request: Request) -> JSONResponse:
    assistant = request.app.state.assistant
    message = body.message or ""
    try:
        if body.type == "generate_description":
            reply = await assistant.describe(message)
        else:
            history = [turn.model_dump() for turn in body.history]
            reply = await assistant.chat(message, history)
    except AssistantError as e:
        logger.error("api_chat_failed", type=body.type, error=str(e))
        return _error(500, CHAT_ERROR)
    return JSONResponse(content={"reply": reply})


@router.post("/api/generate-description")
async def generate_description(body: DescriptionRequest, request: Request) -> JSONResponse:
    assistant = request.app.state.assistant
    try:
        description = await assistant.generate_description(
            item_name=body.itemName,
            story=body.story,
            cause=body.cause,
            donor_name=body.donorName,
        )
    except AssistantError as e:
        logger.error("api_generate_description_failed", item_name=body.itemName, error=str(e))
        return _error(500, DESCRIPTION_ERROR)
    return JSONResponse(content={"description": description})


@router.post("/api/verify-charity")
async def verify_charity(body: VerifyCharityRequest, request: Request) -> JSONResponse:
    """
    Audit a registration document. 400 when ipfsHash is missing (nothing is
    fetched); 500 with score 0 when the PDF is unusable (the assistant is not
    called) or the audit itself fails.
    """
    auditor = request.app.state.auditor
    if not body.ipfsHash or not body.ipfsHash.strip():
        return _error(400, MISSING_HASH_ERROR)
    try:
        verdict = await auditor.verify(body.ipfsHash, body.charityName or "")
    except InputValidationError as e:
        return _error(400, str(e))
    except (DocumentFetchError, DocumentExtractionError) as e:
        logger.warning("api_verify_charity_document_failed", ipfs_hash=body.ipfsHash, error=str(e))
        return _error(500, EXTRACTION_ERROR, score=0, summary=EXTRACTION_SUMMARY)
    except Exception as e:
        logger.exception("api_verify_charity_failed", ipfs_hash=body.ipfsHash, error=str(e))
        return _error(500, AUDIT_ERROR, score=0, summary=AUDIT_SUMMARY)
    logger.info("api_verify_charity_done", charity_name=body.charityName, score=verdict.get("score"))
    return JSONResponse(content=verdict)


def _snapshot_response(request: Request, kind: str) -> Any:
    """The current snapshot of a served resource, or an error response."""
    state = request.app.state
    if state.hub is None or state.views is None:
        return _error(503, SYNC_DISABLED_ERROR)
    snap = state.hub.snapshot(state.views.resource(kind).key)
    if snap is None:
        return _error(503, NOT_SYNCED_ERROR)
    return snap


def _list_payload(items: list[Any], snap: Any) -> dict[str, Any]:
    return {
        "items": [i.to_dict() for i in items],
        "count": len(items),
        "sequence": snap.sequence,
        "fetched_at": snap.fetched_at,
    }


@router.get("/api/auctions")
def list_auctions(request: Request, q: str = "", owner: str | None = None) -> JSONResponse:
    snap = _snapshot_response(request, "auctions")
    if isinstance(snap, JSONResponse):
        return snap
    items = filter_auctions(snap.value, query=q, owner=owner)
    return JSONResponse(content=_list_payload(items, snap))


@router.get("/api/charities")
def list_charities(request: Request, tab: str | None = None, q: str = "") -> JSONResponse:
    snap = _snapshot_response(request, "charities")
    if isinstance(snap, JSONResponse):
        return snap
    items = list(snap.value)
    if tab is not None or q:
        items = filter_charities(items, tab=tab or "verified", query=q)
    return JSONResponse(content=_list_payload(items, snap))


@router.get("/api/proposals")
def list_proposals(request: Request) -> JSONResponse:
    snap = _snapshot_response(request, "proposals")
    if isinstance(snap, JSONResponse):
        return snap
    return JSONResponse(content=_list_payload(list(snap.value.proposals), snap))


@router.get("/api/auctions/{auction_id}")
async def auction_detail(auction_id: str, request: Request) -> JSONResponse:
    views = request.app.state.views
    if views is None:
        return _error(503, SYNC_DISABLED_ERROR)
    try:
        detail = await views.auction_detail(auction_id.strip())
    except LedgerError as e:
        logger.warning("api_auction_detail_failed", auction_id=auction_id, error=str(e))
        return _error(502, "Ledger unavailable")
    if detail is None:
        return _error(404, "Auction not found")
    return JSONResponse(content=detail.to_dict())


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: ServerSettings | None = None,
    *,
    assistant: Any = None,
    auditor: Any = None,
    hub: SyncHub | None = None,
    views: LedgerViews | None = None,
) -> FastAPI:
    """
    Build the ASGI app. Collaborators not given are built from settings
    (and the deployment config, when ledger sync is enabled).

    Raises:
        ConfigurationError: settings missing or invalid (e.g. no GEMINI_API_KEY).
    """
    settings = settings or load_server_settings()
    if assistant is None:
        assistant = AssistantClient(settings.gemini_api_key, model_name=settings.model_name)
    if auditor is None:
        auditor = DocumentAuditor(
            assistant,
            gateway=settings.ipfs_gateway,
            timeout_sec=settings.document_timeout_sec,
        )

    owned_reader: SuiLedgerReader | None = None
    if settings.ledger_sync_enabled and views is None:
        deployment = load_deployment_config()
        owned_reader = SuiLedgerReader(deployment.rpc_url)
        views = LedgerViews(owned_reader, deployment)
        if hub is None:
            hub = SyncHub(confirm=owned_reader.wait_for_transaction)
    elif not settings.ledger_sync_enabled:
        hub = None
        views = None
    elif hub is None:
        hub = SyncHub()

    app = FastAPI(
        title="Charity Auction API",
        description="Assistant proxy, charity document audit and ledger read replica.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.assistant = assistant
    app.state.auditor = auditor
    app.state.hub = hub
    app.state.views = views
    app.state.owned_reader = owned_reader

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    logger.info(
        "api_app_created",
        model=settings.model_name,
        ledger_sync=hub is not None,
        cors_origins=list(settings.cors_origins),
    )
    return app

"""
Sui ledger reader: async JSON-RPC client.

Responsibilities:
- Query objects, events, owned objects and balances from a Sui fullnode.
- Retry transport failures with exponential backoff; surface JSON-RPC errors
  as LedgerRpcError without retrying (the node answered, retrying won't help).
- Wait for a transaction digest to be confirmed before callers re-read state.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from typing import Any, Sequence

import httpx

from backend_charity.core.exceptions import LedgerError, LedgerRpcError, LedgerTimeoutError
from backend_charity.ledger.models import LedgerEvent, LedgerObject, TransactionReceipt
from backend_charity.logging import get_logger

logger = get_logger(__name__)

SUI_COIN_TYPE = "0x2::sui::SUI"
# sui_multiGetObjects rejects more than 50 ids per request
MULTI_GET_CHUNK = 50
EVENT_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 20

_OBJECT_OPTIONS = {"showContent": True, "showType": True}


class SuiLedgerReader:
    """
    Read-only client for one Sui fullnode.

    Use as an async context manager, or call aclose() when done. A custom
    httpx transport can be injected for tests.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout_sec: float = 30.0,
        max_retries: int = 3,
        min_retry_delay_sec: float = 0.5,
        max_retry_delay_sec: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            rpc_url: Fullnode JSON-RPC endpoint (e.g. https://fullnode.testnet.sui.io:443).
            request_timeout_sec: HTTP timeout for each RPC request.
            max_retries: Attempts per call before giving up on transport errors.
            min_retry_delay_sec: Initial backoff delay.
            max_retry_delay_sec: Cap for backoff delay.
            transport: Optional httpx transport (httpx.MockTransport in tests).
        """
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._rpc_url = rpc_url.rstrip("/")
        self._max_retries = max_retries
        self._min_retry_delay = min_retry_delay_sec
        self._max_retry_delay = max_retry_delay_sec
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout_sec),
            transport=transport,
        )
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def __aenter__(self) -> "SuiLedgerReader":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(self, method: str, params: list[Any]) -> Any:
        """
        Perform one JSON-RPC call and return its result member.

        Raises:
            LedgerRpcError: the node returned an error member.
            LedgerError: transport failed after all retries or the reply was malformed.
        """
        delay = self._min_retry_delay
        for attempt in range(self._max_retries):
            body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
            try:
                resp = await self._client.post(self._rpc_url, json=body)
                resp.raise_for_status()
                data = resp.json()
                break
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(
                    "ledger_rpc_retry",
                    method=method,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                    error=str(e),
                )
                if attempt + 1 >= self._max_retries:
                    logger.error("ledger_rpc_give_up", method=method, error=str(e))
                    raise LedgerError(f"Sui RPC {method} failed: {e}") from e
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)

        if not isinstance(data, dict):
            raise LedgerError(f"Sui RPC {method} returned a non-object reply")
        if "error" in data:
            err = data["error"] or {}
            raise LedgerRpcError(
                f"Sui RPC error: {err.get('message', err)} (code={err.get('code')})",
                code=err.get("code"),
            )
        if "result" not in data:
            raise LedgerError(f"Sui RPC {method} returned no result")
        return data["result"]

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    async def get_object(self, object_id: str) -> LedgerObject | None:
        """Fetch one object with content; None when it does not exist."""
        result = await self.request("sui_getObject", [object_id, _OBJECT_OPTIONS])
        return LedgerObject.from_rpc_item(result or {})

    async def multi_get_objects(self, object_ids: Sequence[str]) -> list[LedgerObject]:
        """
        Fetch many objects, preserving request order.

        Missing objects are dropped; objects without content are kept with
        fields=None so the caller decides whether to skip them.
        """
        out: list[LedgerObject] = []
        ids = list(object_ids)
        for start in range(0, len(ids), MULTI_GET_CHUNK):
            chunk = ids[start:start + MULTI_GET_CHUNK]
            result = await self.request("sui_multiGetObjects", [chunk, _OBJECT_OPTIONS])
            for item in result or []:
                obj = LedgerObject.from_rpc_item(item)
                if obj is not None:
                    out.append(obj)
        return out

    async def get_owned_objects(
        self,
        owner: str,
        *,
        struct_type: str | None = None,
        object_id: str | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[LedgerObject]:
        """Objects owned by an address, optionally filtered by struct type or id."""
        query: dict[str, Any] = {"options": _OBJECT_OPTIONS}
        if struct_type:
            query["filter"] = {"StructType": struct_type}
        elif object_id:
            query["filter"] = {"ObjectId": object_id}
        out: list[LedgerObject] = []
        cursor = None
        for _ in range(max_pages):
            page = await self.request("suix_getOwnedObjects", [owner, query, cursor, None])
            for item in page.get("data") or []:
                obj = LedgerObject.from_rpc_item(item)
                if obj is not None:
                    out.append(obj)
            if not page.get("hasNextPage"):
                break
            cursor = page.get("nextCursor")
        return out

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def query_events(
        self,
        event_type: str,
        *,
        descending: bool = False,
        limit: int | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[LedgerEvent]:
        """
        Events of one Move type, in ledger order (or newest first when descending).

        Pages with the node's cursor until limit events are collected, the
        node reports no further page, or max_pages is reached.
        """
        out: list[LedgerEvent] = []
        if limit is not None and limit <= 0:
            return out
        cursor = None
        for _ in range(max_pages):
            page_size = EVENT_PAGE_SIZE if limit is None else min(EVENT_PAGE_SIZE, limit - len(out))
            page = await self.request(
                "suix_queryEvents",
                [{"MoveEventType": event_type}, cursor, page_size, descending],
            )
            for item in page.get("data") or []:
                try:
                    out.append(LedgerEvent.from_rpc_item(item))
                except (KeyError, TypeError, ValueError) as e:
                    logger.debug("ledger_event_skipped", event_type=event_type, error=str(e))
            if limit is not None and len(out) >= limit:
                return out[:limit]
            if not page.get("hasNextPage"):
                break
            cursor = page.get("nextCursor")
        return out

    # ------------------------------------------------------------------
    # Coins
    # ------------------------------------------------------------------

    async def get_balance(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> int:
        """Total balance of coin_type owned by owner, in MIST."""
        result = await self.request("suix_getBalance", [owner, coin_type])
        return int((result or {}).get("totalBalance") or 0)

    async def get_coins(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> list[dict[str, Any]]:
        """First page of coin objects (coinObjectId, balance, ...) owned by owner."""
        result = await self.request("suix_getCoins", [owner, coin_type, None, None])
        return list((result or {}).get("data") or [])

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def get_transaction(self, digest: str) -> TransactionReceipt:
        result = await self.request(
            "sui_getTransactionBlock",
            [digest, {"showEffects": True}],
        )
        return TransactionReceipt.from_rpc_item(result or {})

    async def wait_for_transaction(
        self,
        digest: str,
        *,
        timeout_sec: float = 60.0,
        poll_interval_sec: float = 1.0,
    ) -> TransactionReceipt:
        """
        Poll until the node knows about digest, then return its receipt.

        Raises:
            LedgerTimeoutError: the digest was not confirmed within timeout_sec.
        """
        deadline = time.monotonic() + timeout_sec
        while True:
            try:
                receipt = await self.get_transaction(digest)
                logger.debug("ledger_tx_confirmed", digest=digest, status=receipt.status)
                return receipt
            except LedgerRpcError as e:
                # Node answers "could not find the referenced transaction" until it lands
                if time.monotonic() + poll_interval_sec > deadline:
                    raise LedgerTimeoutError(
                        f"Transaction {digest} not confirmed within {timeout_sec}s"
                    ) from e
            await asyncio.sleep(poll_interval_sec)

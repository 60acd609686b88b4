#!/usr/bin/env python3
"""
Watch one ledger resource and print each new snapshot as a JSON line.

Subscribes through the SyncHub exactly like the API server does, so the
output is what the read replica would serve.

Usage:
  python -m backend_charity.tools.watch_ledger auctions
  python -m backend_charity.tools.watch_ledger auction --id 0xabc... --interval 5
  python -m backend_charity.tools.watch_ledger profile --address 0x123... --once
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from backend_charity.config import load_deployment_config
from backend_charity.core.exceptions import CharityAuctionError
from backend_charity.ledger.client import SuiLedgerReader
from backend_charity.logging import get_logger
from backend_charity.sync.hub import SyncHub
from backend_charity.sync.resources import LedgerViews
from backend_charity.sync.scheduler import Snapshot

logger = get_logger(__name__)

ID_KINDS = ("auction", "campaign")
ADDRESS_KINDS = ("profile", "balance", "admin", "registration")
KINDS = ("auctions", "charities", "proposals", *ID_KINDS, *ADDRESS_KINDS)

# used when a list resource (fetched on mount only) is watched continuously
DEFAULT_WATCH_INTERVAL_SEC = 15.0


def to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def render(kind: str, value: Any, *, sequence: int | None = None) -> str:
    line: dict[str, Any] = {"resource": kind, "data": to_jsonable(value)}
    if sequence is not None:
        line["sequence"] = sequence
    return json.dumps(line, ensure_ascii=False)


async def run(kind: str, arg: str | None, *, interval_sec: float | None, once: bool) -> None:
    config = load_deployment_config()
    async with SuiLedgerReader(config.rpc_url) as reader:
        views = LedgerViews(reader, config)
        spec = views.resource(kind, arg)
        if once:
            print(render(kind, await spec.fetch()), flush=True)
            return

        def on_update(snap: Snapshot) -> None:
            print(render(kind, snap.value, sequence=snap.sequence), flush=True)

        def on_error(err: Exception) -> None:
            print(json.dumps({"resource": kind, "error": str(err)}), file=sys.stderr, flush=True)

        hub = SyncHub(confirm=reader.wait_for_transaction)
        interval = interval_sec or spec.interval_sec or DEFAULT_WATCH_INTERVAL_SEC
        sub = await hub.subscribe(spec.key, spec.fetch, interval_sec=interval, on_update=on_update, on_error=on_error)
        logger.info("watch_ledger_started", resource=spec.key, interval_sec=interval)
        try:
            await asyncio.Event().wait()
        finally:
            await sub.cancel()
            await hub.aclose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Print ledger view-model snapshots as JSON lines.")
    parser.add_argument("resource", choices=KINDS, help="Resource to watch")
    parser.add_argument("--id", dest="object_id", help=f"Object id (required for: {', '.join(ID_KINDS)})")
    parser.add_argument("--address", help=f"Wallet address (required for: {', '.join(ADDRESS_KINDS)})")
    parser.add_argument("--interval", type=float, default=None, help="Poll interval in seconds (default: per resource)")
    parser.add_argument("--once", action="store_true", help="Fetch once, print and exit")
    args = parser.parse_args()

    arg = args.object_id if args.resource in ID_KINDS else args.address
    if args.resource in ID_KINDS + ADDRESS_KINDS and not arg:
        parser.error(f"{args.resource} requires --{'id' if args.resource in ID_KINDS else 'address'}")
    if args.interval is not None and args.interval <= 0:
        parser.error("--interval must be positive")

    try:
        asyncio.run(run(args.resource, arg, interval_sec=args.interval, once=args.once))
        return 0
    except KeyboardInterrupt:
        return 0
    except CharityAuctionError as e:
        logger.error("watch_ledger_failed", resource=args.resource, error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

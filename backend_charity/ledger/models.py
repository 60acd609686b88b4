"""
Raw records returned by the ledger reader.

Mirror the Sui JSON-RPC response items one-to-one; no domain meaning is
attached here. The view-model builder turns these into UI shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class LedgerObject:
    """One object from sui_getObject / sui_multiGetObjects / suix_getOwnedObjects."""

    object_id: str
    object_type: str | None
    version: str | None
    fields: dict[str, Any] | None
    """Move struct fields from content.fields; None when the node returned no content."""

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "LedgerObject | None":
        """Build from one SuiObjectResponse; None when the object does not exist."""
        data = item.get("data") if isinstance(item, dict) else None
        if not isinstance(data, dict) or "objectId" not in data:
            return None
        content = data.get("content")
        fields = content.get("fields") if isinstance(content, dict) else None
        return cls(
            object_id=data["objectId"],
            object_type=data.get("type") or (content.get("type") if isinstance(content, dict) else None),
            version=data.get("version"),
            fields=fields if isinstance(fields, dict) else None,
        )


@dataclass(frozen=True)
class LedgerEvent:
    """One Move event from suix_queryEvents."""

    event_type: str
    parsed_json: dict[str, Any]
    timestamp_ms: int | None
    """Unix timestamp (milliseconds) of the checkpoint; None if not available."""
    tx_digest: str | None = None
    event_seq: str | None = None
    sender: str | None = None

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "LedgerEvent":
        event_id = item.get("id") or {}
        ts = item.get("timestampMs")
        parsed = item.get("parsedJson")
        return cls(
            event_type=item["type"],
            parsed_json=parsed if isinstance(parsed, dict) else {},
            timestamp_ms=int(ts) if ts is not None else None,
            tx_digest=event_id.get("txDigest"),
            event_seq=event_id.get("eventSeq"),
            sender=item.get("sender"),
        )


@dataclass(frozen=True)
class TransactionReceipt:
    """Execution outcome of a confirmed transaction (sui_getTransactionBlock effects)."""

    digest: str
    status: str
    """success | failure"""
    error: str | None = None
    created: tuple[str, ...] = field(default_factory=tuple)
    """Object ids created by the transaction."""

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "TransactionReceipt":
        effects = item.get("effects") or {}
        status = effects.get("status") or {}
        created = tuple(
            ref["reference"]["objectId"]
            for ref in effects.get("created") or []
            if isinstance(ref, dict) and isinstance(ref.get("reference"), dict)
        )
        return cls(
            digest=item.get("digest", ""),
            status=status.get("status", "unknown"),
            error=status.get("error"),
            created=created,
        )

"""
Field decoder: raw ledger field encodings to plain values.

Sui returns Move `String`/`vector<u8>` fields in several shapes depending on
how the struct was declared and which RPC produced it: a plain string, a
`{"bytes": [...]}` wrapper, a nested `{"fields": {"bytes": [...]}}` wrapper,
or a bare list of byte values. Everything here is pure and total: no input
shape seen on the wire raises.

Also owns the content-address URL resolver and the fixed money scale
(1 SUI = 10^9 MIST). Amounts stay integer MIST everywhere; conversion to
decimal happens only at display time.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, DecimalException
from typing import Any

from backend_charity.core.exceptions import InputValidationError

MIST_PER_SUI = 1_000_000_000
_SCALE = Decimal(MIST_PER_SUI)
U64_MAX = 2**64 - 1

DEFAULT_IPFS_GATEWAY = "https://gateway.pinata.cloud/ipfs/"
DEFAULT_PLACEHOLDER_URL = "https://placehold.co/600x400/f8f9fa/c1121f?text=No+Image"
IPFS_SCHEME = "ipfs://"


def _decode_bytes(raw: Any) -> str | None:
    """UTF-8 decode a byte sequence; None when raw is not one."""
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, (list, tuple)):
        try:
            return bytes(raw).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            return None
    if isinstance(raw, str):
        return raw
    return None


def decode_text(value: Any) -> str:
    """
    Normalize a raw field value of unknown shape to plain text.

    Empty/absent input yields "" (optional metadata is often missing).
    """
    if not value:
        return ""
    if isinstance(value, dict):
        inner = value.get("bytes")
        if inner is None and isinstance(value.get("fields"), dict):
            inner = value["fields"].get("bytes")
        if inner is not None:
            decoded = _decode_bytes(inner)
            if decoded is not None:
                return decoded
        return str(value)
    decoded = _decode_bytes(value)
    if decoded is not None:
        return decoded
    return str(value)


def resolve_content_url(
    raw: Any,
    *,
    gateway: str = DEFAULT_IPFS_GATEWAY,
    placeholder: str = DEFAULT_PLACEHOLDER_URL,
) -> str:
    """
    Resolve a content reference to one retrieval URL.

    Accepts a gateway URL, a bare CID, an ipfs://CID reference, or a
    comma-joined list of CIDs (first wins). Empty input yields placeholder.
    """
    text = decode_text(raw).strip()
    if not text:
        return placeholder
    first = text.split(",")[0].strip()
    if first.startswith(IPFS_SCHEME):
        first = first[len(IPFS_SCHEME):]
    if first.startswith(gateway):
        first = first[len(gateway):]
    first = first.strip()
    if not first:
        return placeholder
    if first.startswith(("http://", "https://")):
        return first
    return f"{gateway}{first}"


def parse_u64(value: Any, default: int = 0) -> int:
    """u64 fields arrive as decimal strings (or ints); absent/invalid → default."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def mist_to_sui(mist: int) -> Decimal:
    """Exact decimal SUI for an integer MIST amount."""
    return Decimal(int(mist)) / _SCALE


def sui_to_mist(amount: Any) -> int:
    """
    Convert a display-decimal SUI amount to integer MIST, flooring sub-MIST digits.

    Raises:
        InputValidationError: amount is not a finite, non-negative number, or
            does not fit a u64 once scaled to MIST.
    """
    try:
        value = Decimal(str(amount).strip())
    except (DecimalException, ValueError) as e:
        raise InputValidationError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise InputValidationError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise InputValidationError("Amount must not be negative")
    try:
        mist = (value * _SCALE).to_integral_value(rounding=ROUND_FLOOR)
    except DecimalException as e:
        raise InputValidationError("Amount is too large") from e
    if mist > U64_MAX:
        raise InputValidationError("Amount is too large")
    return int(mist)


def format_sui(mist: int, places: int = 2) -> str:
    """Display string for a MIST amount, e.g. 12_340_000_000 → "12.34"."""
    quantum = Decimal(1).scaleb(-places)
    return str(mist_to_sui(mist).quantize(quantum, rounding=ROUND_HALF_UP))

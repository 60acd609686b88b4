"""
Field decoder, content-address resolver and MIST/SUI conversion.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend_charity.core.exceptions import InputValidationError
from backend_charity.ledger.decoder import (
    DEFAULT_IPFS_GATEWAY,
    DEFAULT_PLACEHOLDER_URL,
    MIST_PER_SUI,
    U64_MAX,
    decode_text,
    format_sui,
    mist_to_sui,
    parse_u64,
    resolve_content_url,
    sui_to_mist,
)

HELLO = list("Xin chào".encode("utf-8"))


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, ""),
        ("", ""),
        ([], ""),
        ({}, ""),
        ("plain", "plain"),
        ({"bytes": HELLO}, "Xin chào"),
        ({"fields": {"bytes": HELLO}}, "Xin chào"),
        (HELLO, "Xin chào"),
        (bytes(HELLO), "Xin chào"),
        (42, "42"),
    ],
)
def test_decode_text_shapes(raw, expected):
    assert decode_text(raw) == expected


def test_decode_text_never_raises_on_odd_input():
    """Invalid UTF-8 is replaced; non-byte lists fall back to str()."""
    assert isinstance(decode_text([0xFF, 0xFE]), str)
    assert decode_text([1000, 2000]) == "[1000, 2000]"
    assert decode_text({"bytes": "already text"}) == "already text"
    assert decode_text({"other": 1}) == "{'other': 1}"


def test_resolve_content_url():
    gw = DEFAULT_IPFS_GATEWAY
    assert resolve_content_url(None) == DEFAULT_PLACEHOLDER_URL
    assert resolve_content_url("   ") == DEFAULT_PLACEHOLDER_URL
    assert resolve_content_url("QmAbc") == f"{gw}QmAbc"
    assert resolve_content_url("ipfs://QmAbc") == f"{gw}QmAbc"
    assert resolve_content_url(f"{gw}QmAbc") == f"{gw}QmAbc"
    assert resolve_content_url("QmFirst, QmSecond") == f"{gw}QmFirst"
    assert resolve_content_url("https://cdn.example/img.png") == "https://cdn.example/img.png"
    assert resolve_content_url({"bytes": list(b"QmBytes")}) == f"{gw}QmBytes"


def test_resolve_content_url_custom_gateway():
    assert resolve_content_url("QmAbc", gateway="https://ipfs.io/ipfs/") == "https://ipfs.io/ipfs/QmAbc"
    assert resolve_content_url("", placeholder="none") == "none"


def test_parse_u64():
    assert parse_u64("12340000000") == 12_340_000_000
    assert parse_u64(7) == 7
    assert parse_u64(None) == 0
    assert parse_u64("") == 0
    assert parse_u64("abc", default=-1) == -1


def test_mist_to_sui_exact():
    assert mist_to_sui(12_340_000_000) == Decimal("12.34")
    assert mist_to_sui(1) == Decimal("0.000000001")


def test_sui_to_mist_floors_sub_mist():
    assert sui_to_mist("12.34") == 12_340_000_000
    assert sui_to_mist(Decimal("0.0000000019")) == 1
    assert sui_to_mist(5) == 5 * MIST_PER_SUI
    # float input goes through str(), so 0.1 is exactly 100_000_000
    assert sui_to_mist(0.1) == 100_000_000


@pytest.mark.parametrize("bad", ["", "abc", "-1", "NaN", "Infinity", None])
def test_sui_to_mist_rejects_invalid(bad):
    with pytest.raises(InputValidationError):
        sui_to_mist(bad)


@pytest.mark.parametrize("huge", ["1e999999", "1e20", str(2**64), 2**64 // MIST_PER_SUI + 1])
def test_sui_to_mist_rejects_amounts_beyond_u64(huge):
    with pytest.raises(InputValidationError, match="too large"):
        sui_to_mist(huge)


def test_sui_to_mist_accepts_u64_max():
    assert sui_to_mist(mist_to_sui(U64_MAX)) == U64_MAX


@pytest.mark.parametrize("sui", [0, 1, 5, 12, 1_000_000])
def test_whole_sui_round_trip(sui):
    mist = sui * MIST_PER_SUI
    assert sui_to_mist(mist_to_sui(mist)) == mist


def test_round_trip_error_bounded_by_one_mist():
    for mist in (1, 999, 123_456_789, 12_340_000_001):
        assert abs(sui_to_mist(mist_to_sui(mist)) - mist) <= 1


def test_format_sui():
    assert format_sui(0) == "0.00"
    assert format_sui(5_000_000_000) == "5.00"
    assert format_sui(12_340_000_000) == "12.34"
    assert format_sui(12_345_000_000) == "12.35"
    assert format_sui(1_234_567_890, places=3) == "1.235"

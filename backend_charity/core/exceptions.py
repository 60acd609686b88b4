"""
Application-level exceptions.

One base class per failure family so API handlers, sync ticks and the
transaction submitter can catch at their boundary and convert to a
user-facing message without leaking stack traces.
"""

from __future__ import annotations


class CharityAuctionError(Exception):
    """Base for all errors raised by backend_charity."""


class ConfigurationError(CharityAuctionError):
    """Required setting missing or invalid; fatal at process start."""


class InputValidationError(CharityAuctionError):
    """Caller input rejected before any upstream call is attempted."""


class LedgerError(CharityAuctionError):
    """Ledger read failed (transport, HTTP status or malformed response)."""


class LedgerRpcError(LedgerError):
    """JSON-RPC error member returned by the ledger node."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class LedgerTimeoutError(LedgerError):
    """Ledger did not confirm a transaction within the wait bound."""


class TransactionRejected(CharityAuctionError):
    """Signer declined or the ledger rejected a transaction; message is verbatim."""


class AssistantError(CharityAuctionError):
    """LLM call failed or returned an unusable answer."""


class DocumentFetchError(CharityAuctionError):
    """Content-addressed document could not be downloaded within the bound."""


class DocumentExtractionError(CharityAuctionError):
    """Downloaded document could not be parsed into text."""

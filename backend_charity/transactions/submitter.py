"""
Transaction submitter: intent -> signed transaction -> scoped refresh.

Reports exactly one of success-with-digest or failure-with-message. Never
retries; the user resubmits. On success the affected resources are
refreshed through the hub (wait for the digest, then one authoritative
re-read).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_charity.config.settings import DeploymentConfig
from backend_charity.core.exceptions import InputValidationError, LedgerError, TransactionRejected
from backend_charity.logging import get_logger
from backend_charity.sync.hub import SyncHub
from backend_charity.sync.resources import balance_key, profile_key
from backend_charity.transactions.intents import TransactionIntent
from backend_charity.transactions.signer import TransactionSigner

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    digest: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.digest is not None

    @classmethod
    def success(cls, digest: str) -> "SubmissionResult":
        return cls(digest=digest)

    @classmethod
    def failure(cls, message: str) -> "SubmissionResult":
        return cls(error=message)

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "digest": self.digest}
        return {"ok": False, "error": self.error}


class TransactionSubmitter:
    def __init__(
        self,
        config: DeploymentConfig,
        signer: TransactionSigner,
        hub: SyncHub | None = None,
    ) -> None:
        self._config = config
        self._signer = signer
        self._hub = hub

    async def submit(self, intent: TransactionIntent) -> SubmissionResult:
        kind = type(intent).__name__
        try:
            call = intent.to_move_call(self._config)
        except InputValidationError as e:
            logger.info("tx_input_rejected", intent=kind, error=str(e))
            return SubmissionResult.failure(str(e))

        try:
            digest = await self._signer.sign_and_execute(call)
        except (TransactionRejected, LedgerError) as e:
            # ledger message goes back verbatim
            logger.warning("tx_failed", intent=kind, target=call.target, error=str(e))
            return SubmissionResult.failure(str(e))

        logger.info("tx_submitted", intent=kind, target=call.target, digest=digest)
        if self._hub is not None:
            address = self._signer.address
            keys = (*intent.resource_keys(), profile_key(address), balance_key(address))
            await self._hub.refresh_after_transaction(keys, digest)
        return SubmissionResult.success(digest)

"""
Transaction signing and execution for Sui.

Responsibilities:
- Hold an ed25519 keypair (solders Keypair) and derive its Sui address.
- Have the fullnode build transaction bytes (unsafe_moveCall, unsafe_paySui
  for a bid coin of the exact amount), sign the intent-prefixed digest and
  execute with sui_executeTransactionBlock.
- Turn a failed effects status into TransactionRejected carrying the
  ledger's message verbatim.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Protocol, runtime_checkable

from solders.keypair import Keypair

from backend_charity.core.exceptions import ConfigurationError, TransactionRejected
from backend_charity.ledger.client import SuiLedgerReader
from backend_charity.ledger.models import TransactionReceipt
from backend_charity.logging import get_logger
from backend_charity.transactions.intents import GasCoinSplit, MoveArg, MoveCall, ObjectArg, PureArg

logger = get_logger(__name__)

ED25519_FLAG = 0x00
# IntentScope::TransactionData, IntentVersion::V0, AppId::Sui
TRANSACTION_INTENT = bytes([0, 0, 0])
DEFAULT_GAS_BUDGET = 50_000_000


def sui_address(public_key: bytes) -> str:
    """Sui address of an ed25519 public key: blake2b-256(flag || pubkey)."""
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=32)
    return "0x" + digest.hexdigest()


def transaction_digest_to_sign(tx_bytes: bytes) -> bytes:
    return hashlib.blake2b(TRANSACTION_INTENT + tx_bytes, digest_size=32).digest()


def keypair_from_keystore_entry(entry: str) -> Keypair:
    """
    Load a keypair from one entry of ~/.sui/sui_config/sui.keystore
    (base64 of flag || 32-byte secret). A bare base64 32-byte seed is also
    accepted.
    """
    try:
        raw = base64.b64decode(entry.strip(), validate=True)
    except (ValueError, TypeError) as e:
        raise ConfigurationError("Invalid Sui keystore entry: not base64") from e
    if len(raw) == 33:
        if raw[0] != ED25519_FLAG:
            raise ConfigurationError("Only ed25519 keystore entries are supported")
        raw = raw[1:]
    if len(raw) != 32:
        raise ConfigurationError(f"Invalid Sui keystore entry: expected 32-byte seed, got {len(raw)}")
    return Keypair.from_seed(raw)


@runtime_checkable
class TransactionSigner(Protocol):
    """Signs and executes one MoveCall; returns the transaction digest."""

    @property
    def address(self) -> str: ...

    async def sign_and_execute(self, call: MoveCall) -> str: ...


def _json_arg(arg: MoveArg, coin_id: str | None) -> Any:
    if isinstance(arg, ObjectArg):
        return arg.object_id
    if isinstance(arg, GasCoinSplit):
        if coin_id is None:
            raise TransactionRejected("Bid coin was not prepared")
        return coin_id
    if isinstance(arg, PureArg):
        if arg.type_tag == "u64":
            # u64 travels as a decimal string in Sui JSON
            return str(int(arg.value))
        if arg.type_tag == "u8":
            return int(arg.value)
        return str(arg.value)
    raise TypeError(f"Unsupported Move argument: {arg!r}")


class KeypairSigner:
    """Ed25519 signer that lets the fullnode build transaction bytes."""

    def __init__(
        self,
        reader: SuiLedgerReader,
        keypair: Keypair,
        *,
        gas_budget: int = DEFAULT_GAS_BUDGET,
    ) -> None:
        self._reader = reader
        self._keypair = keypair
        self._gas_budget = gas_budget
        self._public_key = bytes(keypair.pubkey())
        self._address = sui_address(self._public_key)

    @classmethod
    def from_keystore_entry(cls, reader: SuiLedgerReader, entry: str, **kwargs: Any) -> "KeypairSigner":
        return cls(reader, keypair_from_keystore_entry(entry), **kwargs)

    @property
    def address(self) -> str:
        return self._address

    def sign(self, tx_bytes: bytes) -> str:
        """Serialized signature: base64(flag || signature || pubkey)."""
        sig = self._keypair.sign_message(transaction_digest_to_sign(tx_bytes))
        return base64.b64encode(bytes([ED25519_FLAG]) + bytes(sig) + self._public_key).decode()

    async def execute(self, tx_bytes_b64: str) -> TransactionReceipt:
        """
        Sign and execute node-built transaction bytes.

        Raises:
            TransactionRejected: effects status is not success.
        """
        signature = self.sign(base64.b64decode(tx_bytes_b64))
        result = await self._reader.request(
            "sui_executeTransactionBlock",
            [tx_bytes_b64, [signature], {"showEffects": True}, "WaitForLocalExecution"],
        )
        receipt = TransactionReceipt.from_rpc_item(result or {})
        if not receipt.succeeded:
            logger.warning("tx_effects_failed", digest=receipt.digest, error=receipt.error)
            raise TransactionRejected(receipt.error or f"Transaction {receipt.digest} failed")
        return receipt

    async def prepare_coin(self, amount_mist: int) -> str:
        """Send amount_mist to ourselves as a fresh coin; return its object id."""
        coins = await self._reader.get_coins(self._address)
        coins.sort(key=lambda c: int(c.get("balance") or 0), reverse=True)
        selected: list[str] = []
        total = 0
        for coin in coins:
            selected.append(coin["coinObjectId"])
            total += int(coin.get("balance") or 0)
            if total >= amount_mist + self._gas_budget:
                break
        else:
            raise TransactionRejected("Insufficient SUI balance for this amount plus gas")
        built = await self._reader.request(
            "unsafe_paySui",
            [self._address, selected, [self._address], [str(amount_mist)], str(self._gas_budget)],
        )
        receipt = await self.execute(built["txBytes"])
        if not receipt.created:
            raise TransactionRejected("Coin split produced no new coin")
        logger.debug("tx_coin_prepared", digest=receipt.digest, coin_id=receipt.created[0], amount_mist=amount_mist)
        return receipt.created[0]

    async def sign_and_execute(self, call: MoveCall) -> str:
        package, module, function = call.target.split("::")
        split = call.coin_split
        coin_id = await self.prepare_coin(split.amount_mist) if split is not None else None
        built = await self._reader.request(
            "unsafe_moveCall",
            [
                self._address,
                package,
                module,
                function,
                [],
                [_json_arg(a, coin_id) for a in call.arguments],
                None,
                str(self._gas_budget),
            ],
        )
        receipt = await self.execute(built["txBytes"])
        return receipt.digest

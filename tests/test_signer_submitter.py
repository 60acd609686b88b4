"""
KeypairSigner against the fake node, and TransactionSubmitter outcomes.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib

import pytest
from solders.keypair import Keypair
from solders.signature import Signature

from backend_charity.core.exceptions import ConfigurationError, LedgerRpcError, TransactionRejected
from backend_charity.transactions.intents import (
    CreateDisbursementRequest,
    MoveCall,
    PlaceBid,
    RejectDisbursement,
    SettleAuction,
)
from backend_charity.transactions.signer import (
    KeypairSigner,
    TransactionSigner,
    keypair_from_keystore_entry,
    sui_address,
    transaction_digest_to_sign,
)
from backend_charity.transactions.submitter import SubmissionResult, TransactionSubmitter

from ledger_fakes import tx_result

SEED = bytes(range(32))


def keystore_entry(seed: bytes = SEED) -> str:
    return base64.b64encode(b"\x00" + seed).decode()


def script_node(node, *, status="success", error=None):
    """Node that builds transactions and records what it was asked to execute."""
    built = {"count": 0}

    def build(params):
        built["count"] += 1
        return {"txBytes": base64.b64encode(f"tx{built['count']}".encode()).decode()}

    def execute(params):
        tx_b64 = params[0]
        raw = base64.b64decode(tx_b64).decode()
        if raw == "tx1" and "unsafe_paySui" in node.methods():
            return tx_result("DCOIN", created=["0xbidcoin"])
        return tx_result(f"D-{raw}", status=status, error=error)

    node.handlers["unsafe_moveCall"] = build
    node.handlers["unsafe_paySui"] = build
    node.handlers["sui_executeTransactionBlock"] = execute


def test_address_derivation():
    kp = Keypair.from_seed(SEED)
    pub = bytes(kp.pubkey())
    expected = "0x" + hashlib.blake2b(b"\x00" + pub, digest_size=32).hexdigest()
    assert sui_address(pub) == expected
    assert len(expected) == 66


def test_keystore_entry_forms():
    with_flag = keypair_from_keystore_entry(keystore_entry())
    bare = keypair_from_keystore_entry(base64.b64encode(SEED).decode())
    assert bytes(with_flag.pubkey()) == bytes(bare.pubkey()) == bytes(Keypair.from_seed(SEED).pubkey())


@pytest.mark.parametrize(
    "entry",
    [
        "not base64!!",
        base64.b64encode(b"\x01" + SEED).decode(),
        base64.b64encode(b"short").decode(),
    ],
)
def test_keystore_entry_rejected(entry):
    with pytest.raises(ConfigurationError):
        keypair_from_keystore_entry(entry)


def test_signature_layout(make_reader):
    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry())
            return signer, signer.sign(b"hello")

    signer, serialized = asyncio.run(run())
    raw = base64.b64decode(serialized)
    kp = Keypair.from_seed(SEED)
    assert raw[0] == 0
    assert raw[65:] == bytes(kp.pubkey())
    assert Signature.from_bytes(raw[1:65]).verify(kp.pubkey(), transaction_digest_to_sign(b"hello"))
    assert isinstance(signer, TransactionSigner)


def test_sign_and_execute_move_call(node, make_reader, deployment):
    script_node(node)

    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry(), gas_budget=10)
            call = SettleAuction(auction_id="0xa1", charity_id="0xc1").to_move_call(deployment)
            return signer, await signer.sign_and_execute(call)

    signer, digest = asyncio.run(run())
    assert digest == "D-tx1"
    method, params = node.calls[0]
    assert method == "unsafe_moveCall"
    assert params == [
        signer.address,
        "0xpkg",
        "charity_impact_protocol",
        "settle_auction",
        [],
        ["0xglobal", "0xc1", "0xa1", "0x6"],
        None,
        "10",
    ]
    execute_params = node.calls[1][1]
    assert execute_params[2] == {"showEffects": True}
    assert execute_params[3] == "WaitForLocalExecution"


def test_pure_args_serialized_as_sui_json(node, make_reader, deployment):
    script_node(node)

    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry())
            call = RejectDisbursement(proposal_id="0xp1", reason="No receipts").to_move_call(deployment)
            await signer.sign_and_execute(call)

    asyncio.run(run())
    assert node.calls[0][1][5] == ["0xadmincap", "0xp1", "No receipts"]


def test_bid_prepares_exact_coin_first(node, make_reader, deployment):
    script_node(node)

    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry(), gas_budget=100)
            node.coins[signer.address] = [
                {"coinObjectId": "0xsmall", "balance": "10"},
                {"coinObjectId": "0xbig", "balance": "5000000000"},
            ]
            call = PlaceBid(auction_id="0xa1", amount="2").to_move_call(deployment)
            return signer, await signer.sign_and_execute(call)

    signer, digest = asyncio.run(run())
    assert node.methods() == [
        "suix_getCoins",
        "unsafe_paySui",
        "sui_executeTransactionBlock",
        "unsafe_moveCall",
        "sui_executeTransactionBlock",
    ]
    pay = node.calls[1][1]
    assert pay == [signer.address, ["0xbig"], [signer.address], ["2000000000"], "100"]
    move = node.calls[3][1]
    assert move[5] == ["0xglobal", "0xa1", "0xbidcoin", "0x6"]
    assert digest == "D-tx2"


def test_bid_without_enough_balance_is_rejected(node, make_reader, deployment):
    script_node(node)

    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry())
            node.coins[signer.address] = [{"coinObjectId": "0xsmall", "balance": "10"}]
            await signer.sign_and_execute(PlaceBid(auction_id="0xa1", amount="2").to_move_call(deployment))

    with pytest.raises(TransactionRejected, match="Insufficient SUI balance"):
        asyncio.run(run())
    assert "unsafe_moveCall" not in node.methods()


def test_failed_effects_raise_with_ledger_message(node, make_reader, deployment):
    script_node(node, status="failure", error="MoveAbort(place_bid, 3)")

    async def run():
        async with make_reader() as reader:
            signer = KeypairSigner.from_keystore_entry(reader, keystore_entry())
            await signer.sign_and_execute(SettleAuction(auction_id="0xa1", charity_id="0xc1").to_move_call(deployment))

    with pytest.raises(TransactionRejected, match=r"MoveAbort\(place_bid, 3\)"):
        asyncio.run(run())


# ---------------------------------------------------------------------------
# Submitter
# ---------------------------------------------------------------------------


class FakeSigner:
    address = "0xMe"

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls: list[MoveCall] = []

    async def sign_and_execute(self, call: MoveCall) -> str:
        self.calls.append(call)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeHub:
    def __init__(self):
        self.refreshes = []

    async def refresh_after_transaction(self, keys, digest):
        self.refreshes.append((tuple(keys), digest))
        return {}


def test_submit_success_refreshes_affected_resources(deployment):
    signer, hub = FakeSigner("D1"), FakeHub()
    submitter = TransactionSubmitter(deployment, signer, hub)
    result = asyncio.run(submitter.submit(PlaceBid(auction_id="0xa1", amount="3")))
    assert result == SubmissionResult.success("D1")
    assert result.to_dict() == {"ok": True, "digest": "D1"}
    keys, digest = hub.refreshes[0]
    assert digest == "D1"
    assert keys == ("auction:0xa1", "auctions:live", "auctions:all", "profile:0xme", "balance:0xme")


@pytest.mark.parametrize(
    "error",
    [TransactionRejected("User rejected the request"), LedgerRpcError("Insufficient gas", code=-32002)],
)
def test_submit_failure_reports_message_once(deployment, error):
    signer, hub = FakeSigner(error), FakeHub()
    result = asyncio.run(TransactionSubmitter(deployment, signer, hub).submit(SettleAuction(auction_id="0xa1", charity_id="0xc1")))
    assert not result.ok
    assert result.error == str(error)
    assert result.to_dict() == {"ok": False, "error": str(error)}
    assert len(signer.calls) == 1
    assert hub.refreshes == []


def test_submit_invalid_input_never_reaches_signer(deployment):
    signer = FakeSigner("D1")
    result = asyncio.run(TransactionSubmitter(deployment, signer).submit(PlaceBid(auction_id="0xa1", amount="0")))
    assert result.error == "Bid amount must be greater than 0"
    assert signer.calls == []


@pytest.mark.parametrize(
    "intent",
    [
        PlaceBid(auction_id="0xa1", amount="1e999999"),
        PlaceBid(auction_id="0xa1", amount=str(2**64)),
        CreateDisbursementRequest(charity_id="0xc1", amount="1e20", reason="School roof"),
    ],
)
def test_submit_out_of_range_amount_is_a_failure(deployment, intent):
    signer, hub = FakeSigner("D1"), FakeHub()
    result = asyncio.run(TransactionSubmitter(deployment, signer, hub).submit(intent))
    assert not result.ok
    assert result.error == "Amount is too large"
    assert signer.calls == []
    assert hub.refreshes == []

"""
Transactions: typed intents, signing and submission to the charity contract.
"""

from backend_charity.transactions.intents import (
    ApproveCharityFinal,
    ApproveDisbursement,
    CreateAuction,
    CreateDisbursementRequest,
    DisburseFunds,
    MoveCall,
    PlaceBid,
    RegisterCharity,
    RejectDisbursement,
    SettleAuction,
    TransactionIntent,
    VerifyCharityAi,
    auction_duration_ms,
    check_bid,
)
from backend_charity.transactions.signer import KeypairSigner, TransactionSigner
from backend_charity.transactions.submitter import SubmissionResult, TransactionSubmitter

__all__ = [
    "ApproveCharityFinal",
    "ApproveDisbursement",
    "CreateAuction",
    "CreateDisbursementRequest",
    "DisburseFunds",
    "KeypairSigner",
    "MoveCall",
    "PlaceBid",
    "RegisterCharity",
    "RejectDisbursement",
    "SettleAuction",
    "SubmissionResult",
    "TransactionIntent",
    "TransactionSigner",
    "TransactionSubmitter",
    "VerifyCharityAi",
    "auction_duration_ms",
    "check_bid",
]

"""
Backend Charity: ledger sync and AI services for the Sui charity auction.

Keeps a read replica of on-chain auctions, charities and disbursement
proposals in sync with the ledger, submits transactions to the charity
contract, and serves the assistant and document-audit HTTP API. Modular
layout: ledger reader, view models, sync, transactions, assistant, API server.
"""

__version__ = "0.1.0"

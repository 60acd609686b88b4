"""
Ledger package: read access to the Sui ledger and field normalization.

The reader returns raw typed records; the decoder turns heterogeneous
field encodings into plain text and numbers before anything else sees them.
"""

from backend_charity.ledger.client import SuiLedgerReader
from backend_charity.ledger.models import LedgerEvent, LedgerObject, TransactionReceipt

__all__ = ["LedgerEvent", "LedgerObject", "SuiLedgerReader", "TransactionReceipt"]

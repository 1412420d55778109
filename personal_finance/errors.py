"""
Ledger Error Kinds

Closed set of failures raised by the ledger core. Every error carries a
human-readable message, a machine-checkable ``kind`` and the HTTP status the
API boundary maps it to.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger failures"""

    kind = "ledger_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class NotFound(LedgerError):
    """Referenced account, user or transaction set does not exist"""

    kind = "not_found"
    status_code = 404


class InsufficientFunds(LedgerError):
    """Origin balance is below the requested amount"""

    kind = "insufficient_funds"
    status_code = 400

    def __init__(self, message: str, account_id: Optional[str] = None,
                 balance: Optional[Decimal] = None, amount: Optional[Decimal] = None):
        super().__init__(message)
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class InvalidAmount(LedgerError):
    """Amount is non-numeric, non-finite, or not strictly positive"""

    kind = "invalid_amount"
    status_code = 400


class InvalidTransfer(InvalidAmount):
    """Transfer request is malformed (e.g. origin equals destination)"""

    kind = "invalid_transfer"


class PartialTransferFailure(LedgerError):
    """
    The origin debit committed but a later step of the transfer did not.

    ``pending_id`` names the pending-transfer marker left in storage; pass it
    to ``LedgerEngine.reconcile`` to settle the transfer.
    """

    kind = "partial_transfer_failure"
    status_code = 500

    def __init__(self, message: str, pending_id: str, origin_account_id: str,
                 destination_account_id: str, amount: Decimal):
        super().__init__(message)
        self.pending_id = pending_id
        self.origin_account_id = origin_account_id
        self.destination_account_id = destination_account_id
        self.amount = amount

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["pending_id"] = self.pending_id
        return result

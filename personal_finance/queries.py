"""
Transaction Query Facade

Lists transactions for a viewpoint. Each result carries a display direction
computed at query time: DEBIT when the viewpoint account sent the money,
CREDIT otherwise. The label is never stored.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import NotFound
from .transactions import Transaction, TransactionStore, TransactionType


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class TransactionView:
    """A stored transaction plus its per-query display direction"""
    transaction: Transaction
    display_type: TransactionType

    def to_dict(self) -> Dict[str, Any]:
        result = self.transaction.to_dict()
        result['display_type'] = self.display_type.value
        return result


class TransactionQuery:
    """Read side of the transaction history"""

    def __init__(self, transactions: TransactionStore):
        self.transactions = transactions

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> List[TransactionView]:
        """
        Transactions newest first, optionally filtered

        Args:
            account_id: Keep only transfers this account sent or received;
                also the viewpoint for the display direction
            date_from: Inclusive lower bound on ``created_at``
            date_to: Inclusive upper bound on ``created_at``

        Raises:
            NotFound: Nothing matched. An empty list is never returned.
        """
        lower = _as_utc(date_from) if date_from else None
        upper = _as_utc(date_to) if date_to else None

        def matches(transaction: Transaction) -> bool:
            if account_id and not transaction.involves(account_id):
                return False
            if lower and transaction.created_at < lower:
                return False
            if upper and transaction.created_at > upper:
                return False
            return True

        found = self.transactions.query(matches, newest_first=True)
        if not found:
            raise NotFound("No transactions found")

        return [
            TransactionView(transaction=t, display_type=self._direction(t, account_id))
            for t in found
        ]

    @staticmethod
    def _direction(transaction: Transaction, account_id: Optional[str]) -> TransactionType:
        if account_id and transaction.origin_account_id == account_id:
            return TransactionType.DEBIT
        return TransactionType.CREDIT

"""
Transaction Store Module

Append-only history of completed transfers. Records are never modified after
append; they are removed only by the account deletion cascade or by the bulk
clear used for resets.
"""

from decimal import Decimal
from datetime import datetime, timezone, timedelta
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from enum import Enum
import threading
import uuid

from .storage import StorageInterface, StorageRecord


class TransactionType(Enum):
    """
    TRANSFER is the only type stored. DEBIT and CREDIT are display labels
    derived per query relative to a viewpoint account.
    """
    TRANSFER = "transfer"
    DEBIT = "debit"
    CREDIT = "credit"


@dataclass
class Transaction(StorageRecord):
    """Immutable record of one completed transfer"""
    transaction_type: TransactionType
    origin_account_id: str
    destination_account_id: str
    amount: Decimal
    description: Optional[str] = None

    def involves(self, account_id: str) -> bool:
        return account_id in (self.origin_account_id, self.destination_account_id)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Transaction':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            transaction_type=TransactionType(data['transaction_type']),
            origin_account_id=data['origin_account_id'],
            destination_account_id=data['destination_account_id'],
            amount=Decimal(data['amount']),
            description=data.get('description')
        )


class TransactionStore:
    """
    Appends and queries transaction records.

    ``created_at`` is assigned here and is strictly increasing across appends
    made through one store, so ordering by it is a total order.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "transactions"
        self._clock_lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

        existing = self.storage.load_all(self.table_name)
        if existing:
            self._last_timestamp = max(datetime.fromisoformat(data['created_at']) for data in existing)

    def _next_timestamp(self) -> datetime:
        with self._clock_lock:
            now = datetime.now(timezone.utc)
            if self._last_timestamp is not None and now <= self._last_timestamp:
                now = self._last_timestamp + timedelta(microseconds=1)
            self._last_timestamp = now
            return now

    def append(
        self,
        origin_account_id: str,
        destination_account_id: str,
        amount: Decimal,
        description: Optional[str] = None,
        transaction_id: Optional[str] = None
    ) -> Transaction:
        """Record a completed transfer and return it"""
        now = self._next_timestamp()
        transaction = Transaction(
            id=transaction_id or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            transaction_type=TransactionType.TRANSFER,
            origin_account_id=origin_account_id,
            destination_account_id=destination_account_id,
            amount=amount,
            description=description
        )
        self.storage.save(self.table_name, transaction.id, transaction.to_dict())
        return transaction

    def get(self, transaction_id: str) -> Optional[Transaction]:
        data = self.storage.load(self.table_name, transaction_id)
        return Transaction.from_dict(data) if data else None

    def query(
        self,
        predicate: Optional[Callable[[Transaction], bool]] = None,
        newest_first: bool = True
    ) -> List[Transaction]:
        """
        Return transactions matching ``predicate`` ordered by creation time

        Args:
            predicate: Filter applied to each record; None keeps everything
            newest_first: Sort descending by ``created_at`` (default) or ascending
        """
        transactions = [Transaction.from_dict(data) for data in self.storage.load_all(self.table_name)]
        if predicate is not None:
            transactions = [t for t in transactions if predicate(t)]
        transactions.sort(key=lambda t: t.created_at, reverse=newest_first)
        return transactions

    def delete_for_account(self, account_id: str) -> int:
        """Remove every transaction referencing an account; returns how many"""
        ids = {data['id'] for data in self.storage.find(self.table_name, {"origin_account_id": account_id})}
        ids |= {data['id'] for data in self.storage.find(self.table_name, {"destination_account_id": account_id})}
        for transaction_id in ids:
            self.storage.delete(self.table_name, transaction_id)
        return len(ids)

    def clear_all(self) -> None:
        """Remove every transaction (reset tooling, not a user flow)"""
        self.storage.clear_table(self.table_name)

    def count(self) -> int:
        return self.storage.count(self.table_name)

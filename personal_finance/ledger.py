"""
Ledger Engine

Moves funds between two accounts and records the transfer. Guarantees:

* conservation: the origin loses exactly what the destination gains;
* no overdraft: a transfer never takes a balance below zero;
* serialization: transfers touching a shared account never interleave.

On a storage backend with multi-record transactions the balance writes and
the transaction record commit together. Otherwise the engine runs the
transfer as a saga tracked by a durable pending-transfer marker:

    STARTED  -> origin debited  -> DEBITED
    DEBITED  -> destination credited -> CREDITED
    CREDITED -> transaction appended -> marker removed

A failure after the debit raises PartialTransferFailure and leaves the marker
in place for ``reconcile``. Each balance write also tags the account with the
marker id, so ``reconcile`` reads which legs landed from the accounts
themselves; the stored stage may lag one step behind when a stage write fails.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from enum import Enum
from contextlib import contextmanager
import threading
import uuid
import weakref

from .accounts import Account, AccountStore
from .errors import InsufficientFunds, InvalidTransfer, NotFound, PartialTransferFailure
from .money import parse_positive_amount
from .storage import StorageInterface, StorageRecord
from .transactions import Transaction, TransactionStore
from .logging_config import get_logger, log_action


class PendingTransferStage(Enum):
    """Last durably applied step of a non-atomic transfer"""
    STARTED = "started"      # Nothing applied yet
    DEBITED = "debited"      # Origin debited, destination not credited
    CREDITED = "credited"    # Both balances applied, record not appended


@dataclass
class PendingTransfer(StorageRecord):
    """Durable marker for a transfer that is in flight or needs reconciling"""
    origin_account_id: str
    destination_account_id: str
    amount: Decimal
    stage: PendingTransferStage
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'PendingTransfer':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            origin_account_id=data['origin_account_id'],
            destination_account_id=data['destination_account_id'],
            amount=Decimal(data['amount']),
            stage=PendingTransferStage(data['stage']),
            description=data.get('description')
        )


class LedgerEngine:
    """
    Sole writer of balances during transfers
    """

    def __init__(
        self,
        storage: StorageInterface,
        accounts: AccountStore,
        transactions: TransactionStore
    ):
        self.storage = storage
        self.accounts = accounts
        self.transactions = transactions
        self.pending_table = "pending_transfers"
        self.logger = get_logger("personal_finance.ledger")

        # Entries vanish once no caller holds the lock.
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, account_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock

    @contextmanager
    def account_locks(self, *account_ids: str) -> Iterator[None]:
        """
        Hold the mutation lock of every given account.

        Locks are taken in sorted id order so two transfers over the same pair
        of accounts in opposite directions cannot deadlock.
        """
        locks = [self._lock_for(account_id) for account_id in sorted(set(account_ids))]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def transfer(
        self,
        origin_account_id: str,
        destination_account_id: str,
        amount: Any,
        description: Optional[str] = None
    ) -> Transaction:
        """
        Move ``amount`` from the origin account to the destination account

        Args:
            origin_account_id: Account to debit
            destination_account_id: Account to credit (may belong to another owner)
            amount: Strictly positive amount (Decimal, int or numeric string)
            description: Optional free text stored on the transaction

        Returns:
            The recorded Transfer transaction

        Raises:
            InvalidAmount: Amount is not a finite positive number
            InvalidTransfer: Account ids missing or identical
            NotFound: Origin or destination does not exist
            InsufficientFunds: Origin balance is below ``amount``
            PartialTransferFailure: Non-atomic storage failed after the debit
        """
        if not origin_account_id or not destination_account_id:
            raise InvalidTransfer("Origin and destination account ids are required")
        if origin_account_id == destination_account_id:
            raise InvalidTransfer("Origin and destination accounts must be different")
        if description is not None and not isinstance(description, str):
            raise InvalidTransfer("Description must be a string")
        amount = parse_positive_amount(amount)

        with self.account_locks(origin_account_id, destination_account_id):
            origin = self.accounts.load(origin_account_id)
            destination = self.accounts.load(destination_account_id)

            if origin is None or destination is None:
                log_action(
                    self.logger, "warning", "Transfer rejected: account not found",
                    action="transfer",
                    extra={"origin": origin_account_id, "destination": destination_account_id}
                )
                raise NotFound("Origin or destination account not found")

            if origin.balance < amount:
                log_action(
                    self.logger, "warning", "Transfer rejected: insufficient funds",
                    action="transfer", resource=f"account:{origin.id}",
                    extra={"balance": str(origin.balance), "amount": str(amount)}
                )
                raise InsufficientFunds(
                    "Insufficient funds",
                    account_id=origin.id, balance=origin.balance, amount=amount
                )

            if self.storage.supports_transactions:
                transaction = self._commit_atomic(origin, destination, amount, description)
            else:
                transaction = self._commit_saga(origin, destination, amount, description)

        log_action(
            self.logger, "info", "Transfer completed",
            action="transfer", resource=f"transaction:{transaction.id}",
            extra={
                "origin": origin_account_id,
                "destination": destination_account_id,
                "amount": str(amount)
            }
        )
        return transaction

    def _commit_atomic(
        self,
        origin: Account,
        destination: Account,
        amount: Decimal,
        description: Optional[str]
    ) -> Transaction:
        with self.storage.atomic():
            self._apply(origin, -amount)
            self._apply(destination, amount)
            return self.transactions.append(origin.id, destination.id, amount, description)

    def _commit_saga(
        self,
        origin: Account,
        destination: Account,
        amount: Decimal,
        description: Optional[str]
    ) -> Transaction:
        now = datetime.now(timezone.utc)
        pending = PendingTransfer(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            origin_account_id=origin.id,
            destination_account_id=destination.id,
            amount=amount,
            stage=PendingTransferStage.STARTED,
            description=description
        )
        self._save_pending(pending)

        try:
            self._apply(origin, -amount, pending_id=pending.id)
        except Exception:
            # Nothing applied; the marker carries no information.
            self.storage.delete(self.pending_table, pending.id)
            raise

        try:
            self._advance(pending, PendingTransferStage.DEBITED)
            self._apply(destination, amount, pending_id=pending.id)
            self._advance(pending, PendingTransferStage.CREDITED)
            transaction = self.transactions.append(
                origin.id, destination.id, amount, description, transaction_id=pending.id
            )
        except Exception as exc:
            log_action(
                self.logger, "error", "Transfer partially applied",
                action="transfer", resource=f"pending_transfer:{pending.id}",
                extra={
                    "stage": pending.stage.value,
                    "origin": origin.id,
                    "destination": destination.id,
                    "amount": str(amount)
                },
                exc_info=True
            )
            raise PartialTransferFailure(
                f"Transfer {pending.id} stopped at stage '{pending.stage.value}': {exc}",
                pending_id=pending.id,
                origin_account_id=origin.id,
                destination_account_id=destination.id,
                amount=amount
            ) from exc

        try:
            self.storage.delete(self.pending_table, pending.id)
        except Exception:
            # The transfer is complete; reconcile only removes the marker.
            log_action(
                self.logger, "warning", "Pending transfer marker not removed",
                action="transfer", resource=f"pending_transfer:{pending.id}",
                exc_info=True
            )
        return transaction

    def pending_transfers(self) -> List[PendingTransfer]:
        """Markers of transfers that have not settled, oldest first"""
        pending = [PendingTransfer.from_dict(data) for data in self.storage.load_all(self.pending_table)]
        pending.sort(key=lambda p: p.created_at)
        return pending

    def reconcile(self, pending_id: str) -> Optional[Transaction]:
        """
        Settle a pending transfer left behind by a PartialTransferFailure

        Which legs were applied is read from the accounts, not from the
        marker's stage:

        * neither leg: no balance was changed; the marker is discarded.
        * debit only: the origin debit is reversed by crediting it back.
        * both legs: the transaction record is appended if it is missing
          (roll forward) and returned.

        Returns:
            The Transaction when both legs were applied, otherwise None

        Raises:
            NotFound: No marker with that id
        """
        data = self.storage.load(self.pending_table, pending_id)
        if not data:
            raise NotFound(f"Pending transfer {pending_id} not found")
        pending = PendingTransfer.from_dict(data)

        transaction = None
        with self.account_locks(pending.origin_account_id, pending.destination_account_id):
            origin = self.accounts.load(pending.origin_account_id)
            destination = self.accounts.load(pending.destination_account_id)
            debited = origin is not None and pending.id in origin.applied_transfers
            credited = destination is not None and pending.id in destination.applied_transfers

            if credited:
                transaction = self.transactions.get(pending.id)
                if transaction is None:
                    transaction = self.transactions.append(
                        pending.origin_account_id,
                        pending.destination_account_id,
                        pending.amount,
                        pending.description,
                        transaction_id=pending.id
                    )
            elif debited:
                origin.applied_transfers.remove(pending.id)
                self._apply(origin, pending.amount)
            self.storage.delete(self.pending_table, pending.id)

        log_action(
            self.logger, "info", "Pending transfer reconciled",
            action="reconcile", resource=f"pending_transfer:{pending.id}",
            extra={"stage": pending.stage.value, "debited": debited, "credited": credited}
        )
        return transaction

    def _apply(self, account: Account, delta: Decimal, pending_id: Optional[str] = None) -> None:
        account.balance = account.balance + delta
        if pending_id is not None:
            # Settled markers no longer need their tag.
            account.applied_transfers = [
                applied for applied in account.applied_transfers
                if self.storage.exists(self.pending_table, applied)
            ]
            account.applied_transfers.append(pending_id)
        account.updated_at = datetime.now(timezone.utc)
        self.accounts.save(account)

    def _advance(self, pending: PendingTransfer, stage: PendingTransferStage) -> None:
        # The in-memory stage must keep matching the stored one.
        previous = pending.stage
        pending.stage = stage
        pending.updated_at = datetime.now(timezone.utc)
        try:
            self._save_pending(pending)
        except Exception:
            pending.stage = previous
            raise

    def _save_pending(self, pending: PendingTransfer) -> None:
        self.storage.save(self.pending_table, pending.id, pending.to_dict())

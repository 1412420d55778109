"""
Finance Service

Composition root for the ledger: builds the stores, the ledger engine and the
query facade over one storage backend and exposes the caller-facing
operations. The caller supplies an already-authenticated owner id for every
owner-scoped operation.
"""

from datetime import datetime
from typing import Any, List, Optional, Union

from .accounts import Account, AccountStore, AccountType
from .config import FinanceConfig, get_config
from .errors import NotFound
from .ledger import LedgerEngine
from .money import ZERO, parse_balance
from .queries import TransactionQuery, TransactionView
from .storage import InMemoryStorage, SQLiteStorage, StorageInterface
from .transactions import Transaction, TransactionStore
from .users import UserDirectory
from .logging_config import get_logger, log_action


class FinanceService:
    """Ledger core with all components wired to a single storage backend"""

    def __init__(self, storage: StorageInterface, account_delete_policy: str = "cascade"):
        if account_delete_policy not in ("cascade", "retain"):
            raise ValueError(f"Unknown account delete policy: {account_delete_policy}")

        self.storage = storage
        self.account_delete_policy = account_delete_policy
        self.users = UserDirectory(storage)
        self.accounts = AccountStore(storage, self.users)
        self.transactions = TransactionStore(storage)
        self.ledger = LedgerEngine(storage, self.accounts, self.transactions)
        self.queries = TransactionQuery(self.transactions)
        self.logger = get_logger("personal_finance.service")

    @classmethod
    def from_config(cls, config: Optional[FinanceConfig] = None) -> 'FinanceService':
        config = config or get_config()
        if config.storage_backend == "memory":
            storage: StorageInterface = InMemoryStorage()
        else:
            storage = SQLiteStorage(config.database_path)
        return cls(storage, account_delete_policy=config.account_delete_policy)

    # Transfers and history

    def transfer(
        self,
        origin_account_id: str,
        destination_account_id: str,
        amount: Any,
        description: Optional[str] = None
    ) -> Transaction:
        return self.ledger.transfer(origin_account_id, destination_account_id, amount, description)

    def list_transactions(
        self,
        account_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> List[TransactionView]:
        return self.queries.list_transactions(account_id, date_from, date_to)

    def clear_transactions(self) -> None:
        """Remove all transactions (test and reset tooling)"""
        self.transactions.clear_all()
        log_action(self.logger, "warning", "All transactions cleared", action="clear_transactions")

    # Accounts

    def create_account(
        self,
        name: str,
        account_type: Union[AccountType, str],
        owner_id: str,
        balance: Any = None
    ) -> Account:
        initial_balance = ZERO if balance is None else parse_balance(balance)
        return self.accounts.create(name, self._account_type(account_type), owner_id, initial_balance)

    def list_accounts(self, owner_id: str) -> List[Account]:
        accounts = self.accounts.list_by_owner(owner_id)
        if not accounts:
            raise NotFound("No accounts found")
        return accounts

    def update_account(
        self,
        account_id: str,
        owner_id: str,
        name: Optional[str] = None,
        account_type: Optional[Union[AccountType, str]] = None,
        balance: Any = None
    ) -> Account:
        if account_type is not None:
            account_type = self._account_type(account_type)
        new_balance = None if balance is None else parse_balance(balance)

        # Balance edits serialize with transfers touching the same account.
        with self.ledger.account_locks(account_id):
            return self.accounts.update(account_id, owner_id, name, account_type, new_balance)

    def delete_account(self, account_id: str, owner_id: str) -> None:
        with self.ledger.account_locks(account_id):
            with self.storage.atomic():
                self.accounts.delete(account_id, owner_id)
                if self.account_delete_policy == "cascade":
                    removed = self.transactions.delete_for_account(account_id)
                    log_action(
                        self.logger, "info", "Account transactions removed",
                        user_id=owner_id, action="delete_account",
                        resource=f"account:{account_id}", extra={"transactions": removed}
                    )

    @staticmethod
    def _account_type(value: Union[AccountType, str]) -> AccountType:
        # Unknown values raise ValueError; the HTTP schema rejects them earlier.
        return value if isinstance(value, AccountType) else AccountType(value)

    def close(self) -> None:
        self.storage.close()

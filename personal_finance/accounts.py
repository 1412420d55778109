"""
Account Store Module

Holds account records (owner, name, type, balance). Every owner-facing
operation is scoped by owner id so one user can never read or change another
user's accounts. Balance changes made by transfers go through the unscoped
``load``/``save`` pair, which only the ledger engine uses.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum
import uuid

from .errors import NotFound
from .money import ZERO, parse_balance
from .storage import StorageInterface, StorageRecord
from .users import UserDirectory
from .logging_config import get_logger, log_action


class AccountType(Enum):
    """Kinds of account a user can hold"""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"


@dataclass
class Account(StorageRecord):
    """Named monetary account owned by a single user"""
    owner_id: str
    name: str
    account_type: AccountType
    balance: Decimal = ZERO
    # Ids of unsettled non-atomic transfers whose leg on this account has
    # been applied; written in the same save as the balance change.
    applied_transfers: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Account':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            owner_id=data['owner_id'],
            name=data['name'],
            account_type=AccountType(data['account_type']),
            balance=Decimal(data['balance']),
            applied_transfers=list(data.get('applied_transfers', []))
        )


class AccountStore:
    """
    Persists accounts and enforces owner scoping
    """

    def __init__(self, storage: StorageInterface, users: UserDirectory):
        self.storage = storage
        self.users = users
        self.table_name = "accounts"
        self.logger = get_logger("personal_finance.accounts")

    def create(
        self,
        name: str,
        account_type: AccountType,
        owner_id: str,
        initial_balance: Decimal = ZERO
    ) -> Account:
        """
        Create an account for an existing user

        Args:
            name: Display name of the account
            account_type: Kind of account
            owner_id: Id of the owning user
            initial_balance: Opening balance, already validated by the caller

        Returns:
            Created Account

        Raises:
            NotFound: If the owner does not exist
        """
        if not self.users.user_exists(owner_id):
            raise NotFound(f"User {owner_id} not found")

        now = datetime.now(timezone.utc)
        account = Account(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            owner_id=owner_id,
            name=name,
            account_type=account_type,
            balance=initial_balance
        )
        self.save(account)

        log_action(
            self.logger, "info", "Account created",
            user_id=owner_id, action="create_account", resource=f"account:{account.id}",
            extra={"account_type": account_type.value, "balance": str(initial_balance)}
        )
        return account

    def list_by_owner(self, owner_id: str) -> List[Account]:
        """All accounts of an owner, oldest first; may be empty"""
        records = self.storage.find(self.table_name, {"owner_id": owner_id})
        accounts = [Account.from_dict(data) for data in records]
        accounts.sort(key=lambda a: a.created_at)
        return accounts

    def get(self, account_id: str, owner_id: str) -> Account:
        """Get an account owned by ``owner_id``"""
        account = self.load(account_id)
        if account is None or account.owner_id != owner_id:
            raise NotFound(f"Account {account_id} not found or access denied")
        return account

    def update(
        self,
        account_id: str,
        owner_id: str,
        name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        balance: Optional[Decimal] = None
    ) -> Account:
        """
        Partially update an owned account; fields left as None keep their value
        """
        account = self.get(account_id, owner_id)
        changed = {}

        if name is not None:
            account.name = name
            changed['name'] = name
        if account_type is not None:
            account.account_type = account_type
            changed['account_type'] = account_type.value
        if balance is not None:
            account.balance = parse_balance(balance)
            changed['balance'] = str(account.balance)

        if changed:
            account.updated_at = datetime.now(timezone.utc)
            self.save(account)
            log_action(
                self.logger, "info", "Account updated",
                user_id=owner_id, action="update_account", resource=f"account:{account.id}",
                extra=changed
            )
        return account

    def delete(self, account_id: str, owner_id: str) -> Account:
        """Remove an owned account record and return it"""
        account = self.get(account_id, owner_id)
        self.storage.delete(self.table_name, account.id)
        log_action(
            self.logger, "info", "Account deleted",
            user_id=owner_id, action="delete_account", resource=f"account:{account.id}"
        )
        return account

    def load(self, account_id: str) -> Optional[Account]:
        """Load any account by id, ignoring ownership"""
        data = self.storage.load(self.table_name, account_id)
        return Account.from_dict(data) if data else None

    def save(self, account: Account) -> None:
        self.storage.save(self.table_name, account.id, account.to_dict())

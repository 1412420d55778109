"""
Pydantic schemas for API requests and responses
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..accounts import Account, AccountType
from ..queries import TransactionView
from ..transactions import Transaction


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


# Account schemas
class CreateAccountRequest(BaseModel):
    name: str
    account_type: AccountType = Field(..., description="checking, savings, credit or investment")
    balance: Optional[Decimal] = Field(None, ge=0, description="Opening balance, defaults to 0")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class UpdateAccountRequest(BaseModel):
    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    balance: Optional[Decimal] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _not_blank(value)


class AccountResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    account_type: str
    balance: str
    created_at: str
    updated_at: str

    @classmethod
    def from_account(cls, account: Account) -> 'AccountResponse':
        return cls(
            id=account.id,
            owner_id=account.owner_id,
            name=account.name,
            account_type=account.account_type.value,
            balance=str(account.balance),
            created_at=account.created_at.isoformat(),
            updated_at=account.updated_at.isoformat()
        )


# Transaction schemas
class TransferRequest(BaseModel):
    origin_account_id: str = Field(..., min_length=1)
    destination_account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Amount to move, as number or decimal string")
    description: Optional[str] = None

    @model_validator(mode="after")
    def accounts_differ(self) -> 'TransferRequest':
        if self.origin_account_id == self.destination_account_id:
            raise ValueError("origin and destination accounts must be different")
        return self


class TransactionResponse(BaseModel):
    id: str
    transaction_type: str
    origin_account_id: str
    destination_account_id: str
    amount: str
    description: Optional[str] = None
    created_at: str
    display_type: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction, display_type: Optional[str] = None) -> 'TransactionResponse':
        return cls(
            id=transaction.id,
            transaction_type=transaction.transaction_type.value,
            origin_account_id=transaction.origin_account_id,
            destination_account_id=transaction.destination_account_id,
            amount=str(transaction.amount),
            description=transaction.description,
            created_at=transaction.created_at.isoformat(),
            display_type=display_type
        )

    @classmethod
    def from_view(cls, view: TransactionView) -> 'TransactionResponse':
        return cls.from_transaction(view.transaction, display_type=view.display_type.value)

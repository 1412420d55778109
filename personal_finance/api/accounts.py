"""
Account management endpoints
"""

from typing import List
from fastapi import APIRouter, Depends, status

from .dependencies import get_current_owner, get_finance_service
from .schemas import AccountResponse, CreateAccountRequest, UpdateAccountRequest
from ..service import FinanceService


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AccountResponse)
async def create_account(
    request: CreateAccountRequest,
    owner_id: str = Depends(get_current_owner),
    service: FinanceService = Depends(get_finance_service)
):
    """Create an account for the authenticated user"""
    account = service.create_account(
        name=request.name,
        account_type=request.account_type,
        owner_id=owner_id,
        balance=request.balance
    )
    return AccountResponse.from_account(account)


@router.get("", response_model=List[AccountResponse])
async def list_accounts(
    owner_id: str = Depends(get_current_owner),
    service: FinanceService = Depends(get_finance_service)
):
    """List the authenticated user's accounts"""
    return [AccountResponse.from_account(a) for a in service.list_accounts(owner_id)]


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    request: UpdateAccountRequest,
    owner_id: str = Depends(get_current_owner),
    service: FinanceService = Depends(get_finance_service)
):
    """Change name, type or balance of an owned account"""
    account = service.update_account(
        account_id=account_id,
        owner_id=owner_id,
        name=request.name,
        account_type=request.account_type,
        balance=request.balance
    )
    return AccountResponse.from_account(account)


@router.delete("/{account_id}", status_code=status.HTTP_202_ACCEPTED)
async def delete_account(
    account_id: str,
    owner_id: str = Depends(get_current_owner),
    service: FinanceService = Depends(get_finance_service)
):
    """Delete an owned account"""
    service.delete_account(account_id, owner_id)
    return {"message": "Account deleted successfully"}

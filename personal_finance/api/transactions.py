"""
Transaction endpoints
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends

from .dependencies import get_current_owner, get_finance_service
from .schemas import TransactionResponse, TransferRequest
from ..service import FinanceService


router = APIRouter(dependencies=[Depends(get_current_owner)])


@router.post("", response_model=TransactionResponse)
async def transfer(
    request: TransferRequest,
    service: FinanceService = Depends(get_finance_service)
):
    """Move funds between two accounts"""
    transaction = service.transfer(
        origin_account_id=request.origin_account_id,
        destination_account_id=request.destination_account_id,
        amount=request.amount,
        description=request.description
    )
    return TransactionResponse.from_transaction(transaction)


@router.get("", response_model=List[TransactionResponse])
async def list_transactions(
    account_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    service: FinanceService = Depends(get_finance_service)
):
    """Transaction history, newest first, labelled relative to ``account_id``"""
    views = service.list_transactions(account_id, date_from, date_to)
    return [TransactionResponse.from_view(view) for view in views]

"""
Transaction endpoints

Routes take the scope from the path: ``/{scope_kind}/{scope_id}/transactions``
where ``scope_kind`` is ``fund_source`` or ``budget``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from .auth import LedgerSystem, authorize_scope, get_ledger_system, get_session_handle
from .schemas import CreateTransactionRequest
from ..codec import encode_transaction


router = APIRouter()


@router.post("/{scope_kind}/{scope_id}/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    scope_kind: str,
    scope_id: str,
    request: CreateTransactionRequest,
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Record a transaction against a fund source or budget"""
    authorized = await authorize_scope(system, session, scope_kind, scope_id)
    transaction_id = await system.ledger.create_transaction(
        authorized, request.volume, request.notes
    )
    return {"id": transaction_id, "message": "Transaction created"}


@router.get("/{scope_kind}/{scope_id}/transactions")
async def get_transactions(
    scope_kind: str,
    scope_id: str,
    page: int = Query(0, description="Zero-based page index"),
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get one page of transactions for a fund source or budget"""
    authorized = await authorize_scope(system, session, scope_kind, scope_id)
    transactions = await system.ledger.list_transactions(authorized, page)
    return [encode_transaction(transaction) for transaction in transactions]

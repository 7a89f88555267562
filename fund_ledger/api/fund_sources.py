"""
Fund source and budget endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from .auth import LedgerSystem, authorize_scope, get_identity, get_ledger_system, get_session_handle
from .schemas import CreateBudgetRequest, CreateFundSourceRequest
from ..codec import encode_budget, encode_fund_source
from ..identity import Identity
from ..scope import ScopeKind


router = APIRouter()

FUND_SOURCE = ScopeKind.FUND_SOURCE.value


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_fund_source(
    request: CreateFundSourceRequest,
    identity: Identity = Depends(get_identity),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Create a fund source owned by the caller"""
    fund_source_id = await system.fund_source_manager.create_fund_source(
        identity, request.name, request.default_currency
    )
    return {"id": fund_source_id, "message": "Fund source created"}


@router.get("")
async def list_fund_sources(
    identity: Identity = Depends(get_identity),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List the caller's fund sources with balances"""
    fund_sources = await system.fund_source_manager.list_fund_sources(identity)
    return {
        "fund_sources": [
            encode_fund_source(fund_source, balance) for fund_source, balance in fund_sources
        ]
    }


@router.get("/{fund_id}")
async def get_fund_source(
    fund_id: str,
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get a fund source and its balance"""
    authorized = await authorize_scope(system, session, FUND_SOURCE, fund_id)
    fund_source, balance = await system.fund_source_manager.get_fund_source(authorized)
    return encode_fund_source(fund_source, balance)


@router.delete("/{fund_id}")
async def delete_fund_source(
    fund_id: str,
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Delete a fund source with its budgets and transactions"""
    authorized = await authorize_scope(system, session, FUND_SOURCE, fund_id)
    await system.fund_source_manager.delete_fund_source(authorized)
    return {"message": "Fund source deleted"}


@router.post("/{fund_id}/budget", status_code=status.HTTP_201_CREATED)
async def create_budget(
    fund_id: str,
    request: CreateBudgetRequest,
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Create a budget under a fund source"""
    authorized = await authorize_scope(system, session, FUND_SOURCE, fund_id)
    budget_id = await system.fund_source_manager.create_budget(
        authorized, request.name, request.spending_limit
    )
    return {"id": budget_id, "message": "Budget created"}


@router.get("/{fund_id}/budget")
async def list_budgets(
    fund_id: str,
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """List the budgets of a fund source"""
    authorized = await authorize_scope(system, session, FUND_SOURCE, fund_id)
    budgets = await system.fund_source_manager.list_budgets(authorized)
    return {"budgets": [encode_budget(budget) for budget in budgets]}

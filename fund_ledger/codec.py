"""
Response Codec

Turns domain records into JSON-ready dictionaries. The response models
declare only the public fields, so a fund source's owner and a user's
password hash and salt cannot reach the wire. Absent optional values are
left out of the payload.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from .errors import SerializationFailed
from .logging_config import get_logger
from .models import Budget, FundSource, Transaction, User


logger = get_logger("fund_ledger.codec")


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime


class FundSourceResponse(BaseModel):
    id: int
    name: str
    default_currency: str
    created_at: datetime
    balance: Optional[Decimal] = None


class BudgetResponse(BaseModel):
    id: int
    fund_source_id: int
    name: str
    spending_limit: Optional[int] = None
    created_at: datetime


class TransactionResponse(BaseModel):
    id: int
    fund_source_id: int
    budget_id: Optional[int] = None
    volume: int
    original_currency: str
    notes: Optional[str] = None
    created_at: datetime


def _encode(model: type, **values) -> Dict[str, Any]:
    try:
        return model(**values).model_dump(mode="json", exclude_none=True)
    except ValidationError as exc:
        logger.error(f"Could not encode {model.__name__}", exc_info=True)
        raise SerializationFailed() from exc


def encode_user(user: User) -> Dict[str, Any]:
    return _encode(
        UserResponse,
        id=user.id, username=user.username, email=user.email, created_at=user.created_at
    )


def encode_fund_source(fund_source: FundSource, balance: Optional[Decimal] = None) -> Dict[str, Any]:
    return _encode(
        FundSourceResponse,
        id=fund_source.id,
        name=fund_source.name,
        default_currency=fund_source.default_currency,
        created_at=fund_source.created_at,
        balance=balance
    )


def encode_budget(budget: Budget) -> Dict[str, Any]:
    return _encode(
        BudgetResponse,
        id=budget.id,
        fund_source_id=budget.fund_source_id,
        name=budget.name,
        spending_limit=budget.spending_limit,
        created_at=budget.created_at
    )


def encode_transaction(transaction: Transaction) -> Dict[str, Any]:
    return _encode(
        TransactionResponse,
        id=transaction.id,
        fund_source_id=transaction.fund_source_id,
        budget_id=transaction.budget_id,
        volume=transaction.volume,
        original_currency=transaction.original_currency,
        notes=transaction.notes,
        created_at=transaction.created_at
    )

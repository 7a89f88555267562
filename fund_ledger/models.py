"""
Domain Records

Plain dataclasses for the rows the ledger reads and writes. Storage
backends hand back dictionaries; ``from_row`` turns them into records and
normalises timestamps to timezone-aware datetimes.
"""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Record:
    """Base class for stored rows"""
    id: int
    created_at: datetime

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        """Build a record from a storage row, ignoring unknown columns"""
        names = {f.name for f in fields(cls)}
        data = {key: value for key, value in row.items() if key in names}
        data['created_at'] = _as_datetime(data['created_at'])
        return cls(**data)


@dataclass(frozen=True)
class User(Record):
    username: str
    email: str
    password_hash: str
    password_salt: str


@dataclass(frozen=True)
class FundSource(Record):
    """An account or wallet owned by exactly one user"""
    owner_user_id: int
    name: str
    default_currency: str


@dataclass(frozen=True)
class Budget(Record):
    """Sub-grouping of a fund source; owned through its parent"""
    fund_source_id: int
    name: str
    spending_limit: Optional[int] = None


@dataclass(frozen=True)
class Transaction(Record):
    """
    Immutable ledger row.

    ``fund_source_id`` is always set. ``budget_id`` is only set for rows
    recorded under a budget, in which case ``fund_source_id`` is that
    budget's parent at the time of writing.
    """
    fund_source_id: int
    volume: int
    original_currency: str
    budget_id: Optional[int] = None
    notes: Optional[str] = None

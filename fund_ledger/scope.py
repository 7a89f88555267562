"""
Transaction Scopes

A scope names the parent a transaction request targets: a fund source or
a budget. Parsing a scope out of the request path grants nothing; the
ownership verifier must accept it before any ledger operation runs.

Each variant knows how its owner is found and how rows under it are
written and read, so callers never branch on the storage shape.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import re

from .async_storage import AsyncStorageInterface
from .errors import InvalidIdentifier, NotFound


MAX_SCOPE_ID = 2 ** 32 - 1

_DIGITS = re.compile(r"[0-9]+")


class ScopeKind(Enum):
    """Kinds of parent a transaction can be recorded under"""
    FUND_SOURCE = "fund_source"
    BUDGET = "budget"


@dataclass(frozen=True)
class Scope(ABC):
    """Unverified (kind, id) pair taken from a request"""
    id: int

    @property
    @abstractmethod
    def kind(self) -> ScopeKind:
        pass

    @abstractmethod
    async def resolve_owner(self, storage: AsyncStorageInterface) -> Optional[int]:
        """Effective owner's user id, or None when the scope does not exist"""
        pass

    @abstractmethod
    async def insert_transaction(self, storage: AsyncStorageInterface, volume: int,
                                 notes: Optional[str]) -> Optional[int]:
        """Write one row under this scope; None when the parent vanished"""
        pass

    @abstractmethod
    async def fetch_transactions(self, storage: AsyncStorageInterface, offset: int,
                                 limit: int) -> List[Dict[str, Any]]:
        pass

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class FundSourceScope(Scope):
    """Transactions recorded directly against a fund source"""

    @property
    def kind(self) -> ScopeKind:
        return ScopeKind.FUND_SOURCE

    async def resolve_owner(self, storage):
        return await storage.get_fund_source_owner(self.id)

    async def insert_transaction(self, storage, volume, notes):
        return await storage.insert_fund_source_transaction(self.id, volume, notes)

    async def fetch_transactions(self, storage, offset, limit):
        return await storage.list_transactions_by_fund_source(self.id, offset, limit)


@dataclass(frozen=True)
class BudgetScope(Scope):
    """
    Transactions recorded against a budget.

    A budget has no owner of its own; ownership and the fund source of new
    rows are both read through its parent at the moment they are needed.
    """

    @property
    def kind(self) -> ScopeKind:
        return ScopeKind.BUDGET

    async def resolve_owner(self, storage):
        return await storage.get_budget_owner(self.id)

    async def insert_transaction(self, storage, volume, notes):
        return await storage.insert_budget_transaction(self.id, volume, notes)

    async def fetch_transactions(self, storage, offset, limit):
        return await storage.list_transactions_by_budget(self.id, offset, limit)


_SCOPE_TYPES = {
    ScopeKind.FUND_SOURCE: FundSourceScope,
    ScopeKind.BUDGET: BudgetScope,
}


def parse_identifier(path_id: str) -> int:
    """Parse a path segment as a non-negative integer id"""
    if not _DIGITS.fullmatch(path_id):
        raise InvalidIdentifier()
    value = int(path_id)
    if value > MAX_SCOPE_ID:
        raise InvalidIdentifier()
    return value


def resolve_scope(path_type: str, path_id: str) -> Scope:
    """
    Build a scope descriptor from the two path segments of a ledger route.

    ``path_type`` is matched exactly (no case folding); anything other than
    ``fund_source`` or ``budget`` is treated as a route that does not exist.

    Raises:
        NotFound: unknown scope kind
        InvalidIdentifier: ``path_id`` is not a non-negative integer
    """
    try:
        kind = ScopeKind(path_type)
    except ValueError:
        raise NotFound()

    return _SCOPE_TYPES[kind](parse_identifier(path_id))

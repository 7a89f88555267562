"""
Fund Sources and Budgets

Fund sources are created by and belong to one user. Budgets hang off a
fund source. Every operation on an existing fund source takes an
``AuthorizedScope`` for it.
"""

from decimal import Decimal
from typing import List, Optional, Tuple
import re

from .async_storage import AsyncStorageInterface
from .errors import Denied, InvalidRequest, NotFound
from .identity import Identity
from .ledger import LedgerService
from .logging_config import get_logger, log_action
from .models import Budget, FundSource
from .ownership import AuthorizedScope
from .scope import FundSourceScope


logger = get_logger("fund_ledger.fund_sources")

_CURRENCY_CODE = re.compile(r"[A-Za-z]{3}")


def _require_fund_source(authorized: AuthorizedScope) -> FundSourceScope:
    if not isinstance(authorized.scope, FundSourceScope):
        raise NotFound()
    return authorized.scope


class FundSourceManager:
    """Manages fund sources and their budgets"""

    def __init__(self, storage: AsyncStorageInterface, ledger: LedgerService):
        self.storage = storage
        self.ledger = ledger

    async def create_fund_source(self, identity: Identity, name: str, default_currency: str) -> int:
        if not name:
            raise InvalidRequest("Name must not be empty")
        if not _CURRENCY_CODE.fullmatch(default_currency):
            raise InvalidRequest("Currency must be a three letter code")

        fund_source_id = await self.storage.create_fund_source(
            identity.user_id, name, default_currency.upper()
        )
        log_action(
            logger, "info", "Fund source created",
            user_id=identity.user_id, action="create_fund_source",
            resource=f"fund_source:{fund_source_id}"
        )
        return fund_source_id

    async def list_fund_sources(self, identity: Identity) -> List[Tuple[FundSource, Decimal]]:
        """The caller's fund sources with their balances"""
        result = []
        for row in await self.storage.list_fund_sources(identity.user_id):
            fund_source = FundSource.from_row(row)
            # Listed rows are the caller's own by construction of the query
            authorized = AuthorizedScope(FundSourceScope(fund_source.id), identity.user_id)
            result.append((fund_source, await self.ledger.get_fund_source_balance(authorized)))
        return result

    async def get_fund_source(self, authorized: AuthorizedScope) -> Tuple[FundSource, Decimal]:
        scope = _require_fund_source(authorized)
        row = await self.storage.get_fund_source(scope.id)
        if row is None:
            raise Denied()
        return FundSource.from_row(row), await self.ledger.get_fund_source_balance(authorized)

    async def delete_fund_source(self, authorized: AuthorizedScope) -> None:
        """Delete the fund source together with its budgets and transactions"""
        scope = _require_fund_source(authorized)
        deleted = await self.storage.delete_fund_source(scope.id)
        if not deleted:
            raise Denied()
        log_action(
            logger, "info", "Fund source deleted",
            user_id=authorized.user_id, action="delete_fund_source", resource=str(scope)
        )

    async def create_budget(self, authorized: AuthorizedScope, name: str,
                            spending_limit: Optional[int] = None) -> int:
        scope = _require_fund_source(authorized)
        if not name:
            raise InvalidRequest("Name must not be empty")
        if spending_limit is not None and spending_limit < 0:
            raise InvalidRequest("Spending limit must not be negative")

        budget_id = await self.storage.create_budget(scope.id, name, spending_limit)
        log_action(
            logger, "info", "Budget created",
            user_id=authorized.user_id, action="create_budget", resource=f"budget:{budget_id}",
            extra={"fund_source_id": scope.id}
        )
        return budget_id

    async def list_budgets(self, authorized: AuthorizedScope) -> List[Budget]:
        scope = _require_fund_source(authorized)
        return [Budget.from_row(row) for row in await self.storage.list_budgets(scope.id)]

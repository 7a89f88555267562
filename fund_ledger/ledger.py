"""
Ledger Operations

Append-only transaction ledger. Every operation takes an ``AuthorizedScope``
produced by ``verify_owner`` in the same request; there is no entry point
that accepts a bare id.

Balances are integer sums of signed volumes returned as ``Decimal``.
"""

from decimal import Decimal
from typing import List, Optional

from .async_storage import AsyncStorageInterface
from .errors import InvalidRequest, NotFound, StorageUnavailable
from .logging_config import get_logger, log_action
from .models import Transaction
from .ownership import AuthorizedScope
from .scope import FundSourceScope


logger = get_logger("fund_ledger.ledger")

VOLUME_MIN = -2 ** 31
VOLUME_MAX = 2 ** 31 - 1

# Largest OFFSET the storage engines accept (signed 64-bit)
MAX_OFFSET = 2 ** 63 - 1


class LedgerService:
    """Create, list and aggregate transactions under a verified scope"""

    def __init__(self, storage: AsyncStorageInterface, page_size: int = 50):
        if page_size <= 0:
            raise ValueError("Page size must be positive")
        self.storage = storage
        self.page_size = page_size

    async def create_transaction(self, authorized: AuthorizedScope, volume: int,
                                 notes: Optional[str] = None) -> int:
        """
        Record one transaction under the authorized scope.

        Under a budget the row's fund source is the budget's parent as read
        by the insert itself. If the parent disappeared after verification
        nothing is written and ``StorageUnavailable`` is raised.

        Returns:
            ID of the new transaction
        """
        if isinstance(volume, bool) or not isinstance(volume, int):
            raise InvalidRequest("Volume must be an integer")
        if not VOLUME_MIN <= volume <= VOLUME_MAX:
            raise InvalidRequest("Volume out of range")

        scope = authorized.scope
        transaction_id = await scope.insert_transaction(self.storage, volume, notes)

        if transaction_id is None:
            log_action(
                logger, "error", "Transaction parent vanished before write",
                user_id=authorized.user_id, action="create_transaction", resource=str(scope)
            )
            raise StorageUnavailable()

        log_action(
            logger, "info", "Transaction created",
            user_id=authorized.user_id, action="create_transaction", resource=str(scope),
            extra={"transaction_id": transaction_id, "volume": volume}
        )
        return transaction_id

    async def list_transactions(self, authorized: AuthorizedScope, page: int = 0) -> List[Transaction]:
        """
        One page of the scope's transactions in creation order.

        Pages past the end are empty.
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 0:
            raise InvalidRequest("Page must be a non-negative integer")

        offset = page * self.page_size
        if offset > MAX_OFFSET:
            return []

        rows = await authorized.scope.fetch_transactions(self.storage, offset, self.page_size)
        return [Transaction.from_row(row) for row in rows]

    async def get_fund_source_balance(self, authorized: AuthorizedScope) -> Decimal:
        """Sum of all volumes recorded against the fund source, budgets included"""
        scope = authorized.scope
        if not isinstance(scope, FundSourceScope):
            raise NotFound()

        total = await self.storage.sum_fund_source_volume(scope.id)
        if total is None:
            return Decimal(0)
        return Decimal(total)

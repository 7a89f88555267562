"""
Async Storage Backend Module

Async storage interface used by the request path, with an SQLite
implementation that offloads each statement to a worker thread and a
PostgreSQL implementation on an asyncpg connection pool.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from contextlib import asynccontextmanager
import asyncio
import logging

from .config import LedgerConfig
from .errors import StorageUnavailable
from .storage import SQLiteStorage


logger = logging.getLogger("fund_ledger.storage")


class AsyncStorageInterface(ABC):
    """
    Abstract interface for async storage backends.

    Each method is one logical statement. Lookups return ``None`` or an
    empty list when nothing matches; infrastructure faults raise
    ``StorageUnavailable``.
    """

    async def initialize(self) -> None:
        """Prepare connections and schema (default no-op)"""
        pass

    async def close(self) -> None:
        """Release connections (default no-op)"""
        pass

    # Users

    @abstractmethod
    async def create_user(self, username: str, email: str, password_hash: str, password_salt: str) -> int:
        pass

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def find_users_by_username_or_email(self, username: str, email: str) -> List[Dict[str, Any]]:
        pass

    # Fund sources

    @abstractmethod
    async def create_fund_source(self, user_id: int, name: str, default_currency: str) -> int:
        pass

    @abstractmethod
    async def get_fund_source(self, fund_source_id: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def list_fund_sources(self, user_id: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete_fund_source(self, fund_source_id: int) -> bool:
        pass

    @abstractmethod
    async def get_fund_source_owner(self, fund_source_id: int) -> Optional[int]:
        """Owning user of a fund source, or None if it does not exist"""
        pass

    # Budgets

    @abstractmethod
    async def create_budget(self, fund_source_id: int, name: str, spending_limit: Optional[int]) -> int:
        pass

    @abstractmethod
    async def list_budgets(self, fund_source_id: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_budget_owner(self, budget_id: int) -> Optional[int]:
        """Owner of the budget's parent fund source, or None if either is missing"""
        pass

    # Transactions

    @abstractmethod
    async def insert_fund_source_transaction(self, fund_source_id: int, volume: int,
                                             notes: Optional[str]) -> Optional[int]:
        pass

    @abstractmethod
    async def insert_budget_transaction(self, budget_id: int, volume: int,
                                        notes: Optional[str]) -> Optional[int]:
        pass

    @abstractmethod
    async def list_transactions_by_fund_source(self, fund_source_id: int, offset: int,
                                               limit: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def list_transactions_by_budget(self, budget_id: int, offset: int,
                                          limit: int) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def sum_fund_source_volume(self, fund_source_id: int) -> Optional[int]:
        pass


class AsyncSQLiteStorage(AsyncStorageInterface):
    """Async wrapper around SQLiteStorage"""

    def __init__(self, db_path: str = ":memory:"):
        self._sync_storage = SQLiteStorage(db_path)

    async def _run(self, method: str, *args):
        # Run sync operation in thread pool to avoid blocking
        return await asyncio.to_thread(getattr(self._sync_storage, method), *args)

    async def close(self) -> None:
        await asyncio.to_thread(self._sync_storage.close)

    async def create_user(self, username, email, password_hash, password_salt):
        return await self._run("create_user", username, email, password_hash, password_salt)

    async def get_user(self, user_id):
        return await self._run("get_user", user_id)

    async def get_user_by_email(self, email):
        return await self._run("get_user_by_email", email)

    async def find_users_by_username_or_email(self, username, email):
        return await self._run("find_users_by_username_or_email", username, email)

    async def create_fund_source(self, user_id, name, default_currency):
        return await self._run("create_fund_source", user_id, name, default_currency)

    async def get_fund_source(self, fund_source_id):
        return await self._run("get_fund_source", fund_source_id)

    async def list_fund_sources(self, user_id):
        return await self._run("list_fund_sources", user_id)

    async def delete_fund_source(self, fund_source_id):
        return await self._run("delete_fund_source", fund_source_id)

    async def get_fund_source_owner(self, fund_source_id):
        return await self._run("get_fund_source_owner", fund_source_id)

    async def create_budget(self, fund_source_id, name, spending_limit):
        return await self._run("create_budget", fund_source_id, name, spending_limit)

    async def list_budgets(self, fund_source_id):
        return await self._run("list_budgets", fund_source_id)

    async def get_budget_owner(self, budget_id):
        return await self._run("get_budget_owner", budget_id)

    async def insert_fund_source_transaction(self, fund_source_id, volume, notes):
        return await self._run("insert_fund_source_transaction", fund_source_id, volume, notes)

    async def insert_budget_transaction(self, budget_id, volume, notes):
        return await self._run("insert_budget_transaction", budget_id, volume, notes)

    async def list_transactions_by_fund_source(self, fund_source_id, offset, limit):
        return await self._run("list_transactions_by_fund_source", fund_source_id, offset, limit)

    async def list_transactions_by_budget(self, budget_id, offset, limit):
        return await self._run("list_transactions_by_budget", budget_id, offset, limit)

    async def sum_fund_source_volume(self, fund_source_id):
        return await self._run("sum_fund_source_volume", fund_source_id)


POSTGRES_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id BIGSERIAL PRIMARY KEY,
    username VARCHAR(30) NOT NULL UNIQUE,
    email VARCHAR(254) NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    password_salt TEXT NOT NULL,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS fund_sources (
    id BIGSERIAL PRIMARY KEY,
    user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    default_currency VARCHAR(3) NOT NULL,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS budgets (
    id BIGSERIAL PRIMARY KEY,
    fund_source_id BIGINT NOT NULL REFERENCES fund_sources(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    spending_limit BIGINT,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS transactions (
    id BIGSERIAL PRIMARY KEY,
    fund_source_id BIGINT NOT NULL REFERENCES fund_sources(id) ON DELETE CASCADE,
    budget_id BIGINT REFERENCES budgets(id) ON DELETE CASCADE,
    volume INTEGER NOT NULL,
    original_currency VARCHAR(3) NOT NULL,
    notes TEXT,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_fund_sources_user_id ON fund_sources(user_id);
CREATE INDEX IF NOT EXISTS idx_budgets_fund_source_id ON budgets(fund_source_id);
CREATE INDEX IF NOT EXISTS idx_transactions_fund_source_id ON transactions(fund_source_id, id);
CREATE INDEX IF NOT EXISTS idx_transactions_budget_id ON transactions(budget_id, id);
"""


class AsyncPostgreSQLStorage(AsyncStorageInterface):
    """True async PostgreSQL using asyncpg"""

    def __init__(self, connection_string: str, pool_size: int = 10, command_timeout: float = 30.0):
        self.connection_string = connection_string
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.pool = None
        self._driver_errors = ()

    async def initialize(self):
        """Create connection pool and schema; call on app startup"""
        try:
            import asyncpg
        except ImportError:
            raise ImportError("asyncpg is required for AsyncPostgreSQLStorage")

        # InterfaceError covers dropped connections and out-of-range arguments
        self._driver_errors = (asyncpg.PostgresError, asyncpg.InterfaceError)
        self.pool = await asyncpg.create_pool(
            self.connection_string,
            min_size=1,
            max_size=self.pool_size,
            command_timeout=self.command_timeout
        )
        async with self.pool.acquire() as conn:
            await conn.execute(POSTGRES_SCHEMA)

    async def close(self):
        """Close pool; call on app shutdown"""
        if self.pool:
            await self.pool.close()
            self.pool = None

    @asynccontextmanager
    async def _connection(self):
        """Borrow one pooled connection for a single statement"""
        if not self.pool:
            raise RuntimeError("Pool not initialized. Call initialize() first.")
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except (OSError, asyncio.TimeoutError) + self._driver_errors as exc:
            logger.error("PostgreSQL statement failed", exc_info=True)
            raise StorageUnavailable() from exc

    async def _fetch_one(self, sql: str, *params) -> Optional[Dict[str, Any]]:
        async with self._connection() as conn:
            row = await conn.fetchrow(sql, *params)
            return dict(row) if row else None

    async def _fetch_all(self, sql: str, *params) -> List[Dict[str, Any]]:
        async with self._connection() as conn:
            return [dict(row) for row in await conn.fetch(sql, *params)]

    async def _fetch_value(self, sql: str, *params) -> Any:
        async with self._connection() as conn:
            return await conn.fetchval(sql, *params)

    async def create_user(self, username, email, password_hash, password_salt):
        return await self._fetch_value(
            "INSERT INTO users (username, email, password_hash, password_salt) "
            "VALUES ($1, $2, $3, $4) RETURNING id",
            username, email, password_hash, password_salt
        )

    async def get_user(self, user_id):
        return await self._fetch_one("SELECT * FROM users WHERE id = $1", user_id)

    async def get_user_by_email(self, email):
        return await self._fetch_one("SELECT * FROM users WHERE email = $1", email)

    async def find_users_by_username_or_email(self, username, email):
        return await self._fetch_all(
            "SELECT username, email FROM users WHERE username = $1 OR email = $2 ORDER BY id",
            username, email
        )

    async def create_fund_source(self, user_id, name, default_currency):
        return await self._fetch_value(
            "INSERT INTO fund_sources (user_id, name, default_currency) VALUES ($1, $2, $3) RETURNING id",
            user_id, name, default_currency
        )

    async def get_fund_source(self, fund_source_id):
        return await self._fetch_one(
            "SELECT id, user_id AS owner_user_id, name, default_currency, created_at "
            "FROM fund_sources WHERE id = $1",
            fund_source_id
        )

    async def list_fund_sources(self, user_id):
        return await self._fetch_all(
            "SELECT id, user_id AS owner_user_id, name, default_currency, created_at "
            "FROM fund_sources WHERE user_id = $1 ORDER BY id",
            user_id
        )

    async def delete_fund_source(self, fund_source_id):
        async with self._connection() as conn:
            result = await conn.execute("DELETE FROM fund_sources WHERE id = $1", fund_source_id)
            return result != 'DELETE 0'

    async def get_fund_source_owner(self, fund_source_id):
        return await self._fetch_value("SELECT user_id FROM fund_sources WHERE id = $1", fund_source_id)

    async def create_budget(self, fund_source_id, name, spending_limit):
        return await self._fetch_value(
            "INSERT INTO budgets (fund_source_id, name, spending_limit) VALUES ($1, $2, $3) RETURNING id",
            fund_source_id, name, spending_limit
        )

    async def list_budgets(self, fund_source_id):
        return await self._fetch_all(
            "SELECT * FROM budgets WHERE fund_source_id = $1 ORDER BY id", fund_source_id
        )

    async def get_budget_owner(self, budget_id):
        return await self._fetch_value(
            "SELECT fund_sources.user_id FROM budgets "
            "INNER JOIN fund_sources ON budgets.fund_source_id = fund_sources.id "
            "WHERE budgets.id = $1",
            budget_id
        )

    async def insert_fund_source_transaction(self, fund_source_id, volume, notes):
        return await self._fetch_value(
            "INSERT INTO transactions (fund_source_id, volume, original_currency, notes) "
            "SELECT id, $1::integer, default_currency, $2::text FROM fund_sources WHERE id = $3 RETURNING id",
            volume, notes, fund_source_id
        )

    async def insert_budget_transaction(self, budget_id, volume, notes):
        return await self._fetch_value(
            "INSERT INTO transactions (fund_source_id, budget_id, volume, original_currency, notes) "
            "SELECT budgets.fund_source_id, budgets.id, $1::integer, fund_sources.default_currency, $2::text "
            "FROM budgets INNER JOIN fund_sources ON budgets.fund_source_id = fund_sources.id "
            "WHERE budgets.id = $3 RETURNING id",
            volume, notes, budget_id
        )

    async def list_transactions_by_fund_source(self, fund_source_id, offset, limit):
        return await self._fetch_all(
            "SELECT id, fund_source_id, budget_id, volume, original_currency, notes, created_at "
            "FROM transactions WHERE fund_source_id = $1 ORDER BY id LIMIT $2 OFFSET $3",
            fund_source_id, limit, offset
        )

    async def list_transactions_by_budget(self, budget_id, offset, limit):
        return await self._fetch_all(
            "SELECT id, fund_source_id, budget_id, volume, original_currency, notes, created_at "
            "FROM transactions WHERE budget_id = $1 ORDER BY id LIMIT $2 OFFSET $3",
            budget_id, limit, offset
        )

    async def sum_fund_source_volume(self, fund_source_id):
        return await self._fetch_value(
            "SELECT SUM(volume) FROM transactions WHERE fund_source_id = $1", fund_source_id
        )


def create_async_storage(config: LedgerConfig) -> AsyncStorageInterface:
    """Factory function to create the configured async storage"""
    if config.storage_type.lower() == 'postgresql':
        return AsyncPostgreSQLStorage(
            config.database_url,
            pool_size=config.database_pool_size,
            command_timeout=config.database_command_timeout
        )
    if config.storage_type.lower() == 'sqlite':
        return AsyncSQLiteStorage(config.database_url)
    raise ValueError(f"Unknown storage type: {config.storage_type}")

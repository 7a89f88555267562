"""
Storage Backend Module

Relational schema for users, fund sources, budgets and transactions, and
the SQLite implementation used for local persistence and tests. Volumes
are stored as integers in minor currency units.
"""

from typing import Dict, List, Optional, Any, Union
from datetime import datetime, timezone
from pathlib import Path
from contextlib import contextmanager
import logging
import sqlite3
import threading

from .errors import StorageUnavailable


logger = logging.getLogger("fund_ledger.storage")


SQLITE_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    password_salt TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS fund_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    default_currency TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fund_source_id INTEGER NOT NULL REFERENCES fund_sources(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    spending_limit INTEGER,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    fund_source_id INTEGER NOT NULL REFERENCES fund_sources(id) ON DELETE CASCADE,
    budget_id INTEGER REFERENCES budgets(id) ON DELETE CASCADE,
    volume INTEGER NOT NULL,
    original_currency TEXT NOT NULL,
    notes TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_fund_sources_user_id ON fund_sources(user_id);
CREATE INDEX IF NOT EXISTS idx_budgets_fund_source_id ON budgets(fund_source_id);
CREATE INDEX IF NOT EXISTS idx_transactions_fund_source_id ON transactions(fund_source_id, id);
CREATE INDEX IF NOT EXISTS idx_transactions_budget_id ON transactions(budget_id, id);
"""

FUND_SOURCE_COLUMNS = "id, user_id AS owner_user_id, name, default_currency, created_at"
TRANSACTION_COLUMNS = "id, fund_source_id, budget_id, volume, original_currency, notes, created_at"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStorage:
    """
    SQLite storage implementation for persistence.

    One connection guarded by a re-entrant lock; the lock is held for a
    single statement only. Every ``sqlite3.Error`` surfaces as
    ``StorageUnavailable``.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

        with self._lock:
            self._connection.execute("PRAGMA foreign_keys = ON")
            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._connection.executescript(SQLITE_SCHEMA)
            self._connection.commit()

    @contextmanager
    def _cursor(self):
        """Run one statement under the lock and commit it"""
        with self._lock:
            if self._connection is None:
                raise StorageUnavailable("Storage is closed")
            try:
                cursor = self._connection.cursor()
                yield cursor
                self._connection.commit()
            except sqlite3.Error as exc:
                self._connection.rollback()
                logger.error("SQLite statement failed", exc_info=True)
                raise StorageUnavailable() from exc

    def _fetch_one(self, sql: str, params: tuple) -> Optional[Dict[str, Any]]:
        with self._cursor() as cursor:
            row = cursor.execute(sql, params).fetchone()
            return dict(row) if row else None

    def _fetch_all(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        with self._cursor() as cursor:
            return [dict(row) for row in cursor.execute(sql, params).fetchall()]

    def _insert(self, sql: str, params: tuple) -> Optional[int]:
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            if cursor.rowcount == 0:
                return None
            return cursor.lastrowid

    # Users

    def create_user(self, username: str, email: str, password_hash: str, password_salt: str) -> int:
        return self._insert(
            "INSERT INTO users (username, email, password_hash, password_salt, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (username, email, password_hash, password_salt, _now())
        )

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    def find_users_by_username_or_email(self, username: str, email: str) -> List[Dict[str, Any]]:
        return self._fetch_all(
            "SELECT username, email FROM users WHERE username = ? OR email = ? ORDER BY id",
            (username, email)
        )

    # Fund sources

    def create_fund_source(self, user_id: int, name: str, default_currency: str) -> int:
        return self._insert(
            "INSERT INTO fund_sources (user_id, name, default_currency, created_at) VALUES (?, ?, ?, ?)",
            (user_id, name, default_currency, _now())
        )

    def get_fund_source(self, fund_source_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one(
            f"SELECT {FUND_SOURCE_COLUMNS} FROM fund_sources WHERE id = ?", (fund_source_id,)
        )

    def list_fund_sources(self, user_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            f"SELECT {FUND_SOURCE_COLUMNS} FROM fund_sources WHERE user_id = ? ORDER BY id", (user_id,)
        )

    def delete_fund_source(self, fund_source_id: int) -> bool:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM fund_sources WHERE id = ?", (fund_source_id,))
            return cursor.rowcount > 0

    def get_fund_source_owner(self, fund_source_id: int) -> Optional[int]:
        row = self._fetch_one("SELECT user_id FROM fund_sources WHERE id = ?", (fund_source_id,))
        return row['user_id'] if row else None

    # Budgets

    def create_budget(self, fund_source_id: int, name: str, spending_limit: Optional[int]) -> int:
        return self._insert(
            "INSERT INTO budgets (fund_source_id, name, spending_limit, created_at) VALUES (?, ?, ?, ?)",
            (fund_source_id, name, spending_limit, _now())
        )

    def list_budgets(self, fund_source_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            "SELECT * FROM budgets WHERE fund_source_id = ? ORDER BY id", (fund_source_id,)
        )

    def get_budget_owner(self, budget_id: int) -> Optional[int]:
        row = self._fetch_one(
            "SELECT fund_sources.user_id AS user_id FROM budgets "
            "INNER JOIN fund_sources ON budgets.fund_source_id = fund_sources.id "
            "WHERE budgets.id = ?",
            (budget_id,)
        )
        return row['user_id'] if row else None

    # Transactions

    def insert_fund_source_transaction(self, fund_source_id: int, volume: int,
                                       notes: Optional[str]) -> Optional[int]:
        """Insert a row directly under a fund source; None if the fund source is gone"""
        return self._insert(
            "INSERT INTO transactions (fund_source_id, budget_id, volume, original_currency, notes, created_at) "
            "SELECT id, NULL, ?, default_currency, ?, ? FROM fund_sources WHERE id = ?",
            (volume, notes, _now(), fund_source_id)
        )

    def insert_budget_transaction(self, budget_id: int, volume: int,
                                  notes: Optional[str]) -> Optional[int]:
        """Insert a row under a budget, resolving its parent fund source in the same statement"""
        return self._insert(
            "INSERT INTO transactions (fund_source_id, budget_id, volume, original_currency, notes, created_at) "
            "SELECT budgets.fund_source_id, budgets.id, ?, fund_sources.default_currency, ?, ? "
            "FROM budgets INNER JOIN fund_sources ON budgets.fund_source_id = fund_sources.id "
            "WHERE budgets.id = ?",
            (volume, notes, _now(), budget_id)
        )

    def list_transactions_by_fund_source(self, fund_source_id: int, offset: int,
                                         limit: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE fund_source_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (fund_source_id, limit, offset)
        )

    def list_transactions_by_budget(self, budget_id: int, offset: int,
                                    limit: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE budget_id = ? "
            "ORDER BY id LIMIT ? OFFSET ?",
            (budget_id, limit, offset)
        )

    def sum_fund_source_volume(self, fund_source_id: int) -> Optional[int]:
        """SUM over the fund source's rows; None when there are none"""
        row = self._fetch_one(
            "SELECT SUM(volume) AS balance FROM transactions WHERE fund_source_id = ?",
            (fund_source_id,)
        )
        return row['balance']

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None

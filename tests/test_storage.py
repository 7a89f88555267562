"""
Tests for the SQLite storage backend
"""

import pytest

from fund_ledger.errors import StorageUnavailable
from fund_ledger.storage import SQLiteStorage


@pytest.fixture
def storage():
    """Create in-memory SQLite storage for tests"""
    storage = SQLiteStorage(":memory:")
    yield storage
    storage.close()


@pytest.fixture
def owner(storage):
    return storage.create_user("alice", "alice@example.com", "hash", "salt")


@pytest.fixture
def fund_source(storage, owner):
    return storage.create_fund_source(owner, "Wallet", "EUR")


class TestUsers:
    """Test user rows"""

    def test_create_and_load_user(self, storage, owner):
        row = storage.get_user(owner)
        assert row["username"] == "alice"
        assert row["email"] == "alice@example.com"
        assert row["created_at"]

        assert storage.get_user_by_email("alice@example.com")["id"] == owner
        assert storage.get_user(owner + 100) is None

    def test_find_by_username_or_email(self, storage, owner):
        assert len(storage.find_users_by_username_or_email("alice", "x@example.com")) == 1
        assert len(storage.find_users_by_username_or_email("bob", "alice@example.com")) == 1
        assert storage.find_users_by_username_or_email("bob", "bob@example.com") == []

    def test_duplicate_username_is_storage_error(self, storage, owner):
        with pytest.raises(StorageUnavailable):
            storage.create_user("alice", "other@example.com", "hash", "salt")


class TestOwnership:
    """Test owner lookups"""

    def test_fund_source_owner(self, storage, owner, fund_source):
        assert storage.get_fund_source_owner(fund_source) == owner
        assert storage.get_fund_source_owner(fund_source + 1) is None

    def test_budget_owner_through_parent(self, storage, owner, fund_source):
        budget = storage.create_budget(fund_source, "Groceries", 20000)
        assert storage.get_budget_owner(budget) == owner
        assert storage.get_budget_owner(budget + 1) is None

    def test_fund_source_row_exposes_owner_column_as_owner_user_id(self, storage, owner, fund_source):
        row = storage.get_fund_source(fund_source)
        assert row["owner_user_id"] == owner
        assert "user_id" not in row


class TestTransactions:
    """Test ledger rows"""

    def test_fund_source_transaction(self, storage, fund_source):
        tx_id = storage.insert_fund_source_transaction(fund_source, 150, "salary")
        rows = storage.list_transactions_by_fund_source(fund_source, 0, 10)

        assert len(rows) == 1
        assert rows[0]["id"] == tx_id
        assert rows[0]["budget_id"] is None
        assert rows[0]["original_currency"] == "EUR"
        assert rows[0]["notes"] == "salary"

    def test_budget_transaction_resolves_parent(self, storage, fund_source):
        budget = storage.create_budget(fund_source, "Rent", None)
        tx_id = storage.insert_budget_transaction(budget, -500, "rent")

        rows = storage.list_transactions_by_budget(budget, 0, 10)
        assert rows[0]["id"] == tx_id
        assert rows[0]["fund_source_id"] == fund_source
        assert rows[0]["budget_id"] == budget

        # Budget rows also appear under the parent fund source
        assert [r["id"] for r in storage.list_transactions_by_fund_source(fund_source, 0, 10)] == [tx_id]

    def test_insert_under_missing_parent_writes_nothing(self, storage, fund_source):
        assert storage.insert_budget_transaction(999, 10, None) is None
        assert storage.insert_fund_source_transaction(999, 10, None) is None
        assert storage.sum_fund_source_volume(fund_source) is None

    def test_ordered_pagination(self, storage, fund_source):
        ids = [storage.insert_fund_source_transaction(fund_source, i, None) for i in range(5)]

        assert [r["id"] for r in storage.list_transactions_by_fund_source(fund_source, 0, 2)] == ids[:2]
        assert [r["id"] for r in storage.list_transactions_by_fund_source(fund_source, 2, 2)] == ids[2:4]
        assert [r["id"] for r in storage.list_transactions_by_fund_source(fund_source, 4, 2)] == ids[4:]
        assert storage.list_transactions_by_fund_source(fund_source, 6, 2) == []

    def test_sum_is_null_without_rows(self, storage, fund_source):
        assert storage.sum_fund_source_volume(fund_source) is None

        storage.insert_fund_source_transaction(fund_source, 100, None)
        storage.insert_fund_source_transaction(fund_source, -30, None)
        assert storage.sum_fund_source_volume(fund_source) == 70


class TestCascade:
    """Test fund source deletion"""

    def test_delete_cascades_to_budgets_and_transactions(self, storage, owner, fund_source):
        budget = storage.create_budget(fund_source, "Fun", None)
        storage.insert_budget_transaction(budget, -20, None)
        storage.insert_fund_source_transaction(fund_source, 40, None)

        assert storage.delete_fund_source(fund_source) is True

        assert storage.get_fund_source(fund_source) is None
        assert storage.get_budget_owner(budget) is None
        assert storage.list_transactions_by_budget(budget, 0, 10) == []
        assert storage.list_transactions_by_fund_source(fund_source, 0, 10) == []
        assert storage.delete_fund_source(fund_source) is False

    def test_budget_on_missing_fund_source_rejected(self, storage):
        with pytest.raises(StorageUnavailable):
            storage.create_budget(12345, "Orphan", None)


class TestLifecycle:
    """Test connection handling"""

    def test_closed_storage_is_unavailable(self):
        storage = SQLiteStorage(":memory:")
        storage.close()

        with pytest.raises(StorageUnavailable):
            storage.get_user(1)

    def test_file_database_persists(self, tmp_path):
        path = tmp_path / "ledger.db"

        storage = SQLiteStorage(path)
        user_id = storage.create_user("carol", "carol@example.com", "hash", "salt")
        storage.close()

        reopened = SQLiteStorage(path)
        try:
            assert reopened.get_user(user_id)["username"] == "carol"
        finally:
            reopened.close()

"""
Tests for response encoding
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fund_ledger.codec import encode_budget, encode_fund_source, encode_transaction, encode_user
from fund_ledger.errors import SerializationFailed
from fund_ledger.models import Budget, FundSource, Transaction, User


CREATED = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


class TestEncodeUser:

    def test_credentials_never_encoded(self):
        user = User(
            id=1, created_at=CREATED, username="alice", email="alice@example.com",
            password_hash="deadbeef", password_salt="cafe"
        )
        payload = encode_user(user)

        assert payload == {
            "id": 1,
            "username": "alice",
            "email": "alice@example.com",
            "created_at": payload["created_at"],
        }
        assert "password_hash" not in payload
        assert "password_salt" not in payload
        assert payload["created_at"].startswith("2024-03-01T12:30:00")


class TestEncodeFundSource:

    def test_owner_not_encoded(self):
        fund_source = FundSource(
            id=7, created_at=CREATED, owner_user_id=3, name="Main", default_currency="EUR"
        )
        payload = encode_fund_source(fund_source, Decimal(120))

        assert "owner_user_id" not in payload
        assert payload["name"] == "Main"
        assert payload["default_currency"] == "EUR"
        assert Decimal(payload["balance"]) == Decimal(120)

    def test_balance_omitted_when_absent(self):
        fund_source = FundSource(
            id=7, created_at=CREATED, owner_user_id=3, name="Main", default_currency="EUR"
        )
        assert "balance" not in encode_fund_source(fund_source)


class TestEncodeBudget:

    def test_absent_limit_omitted(self):
        budget = Budget(id=2, created_at=CREATED, fund_source_id=7, name="Rent")
        payload = encode_budget(budget)

        assert payload["fund_source_id"] == 7
        assert "spending_limit" not in payload

    def test_limit_present(self):
        budget = Budget(id=2, created_at=CREATED, fund_source_id=7, name="Rent", spending_limit=500)
        assert encode_budget(budget)["spending_limit"] == 500


class TestEncodeTransaction:

    def test_budget_transaction(self):
        tx = Transaction(
            id=9, created_at=CREATED, fund_source_id=7, volume=-500,
            original_currency="EUR", budget_id=2, notes="rent"
        )
        payload = encode_transaction(tx)

        assert payload["volume"] == -500
        assert payload["budget_id"] == 2
        assert payload["notes"] == "rent"

    def test_fund_source_transaction_omits_absent_fields(self):
        tx = Transaction(id=9, created_at=CREATED, fund_source_id=7, volume=10, original_currency="EUR")
        payload = encode_transaction(tx)

        assert "budget_id" not in payload
        assert "notes" not in payload

    def test_unencodable_record(self):
        tx = Transaction(id=9, created_at=CREATED, fund_source_id=7, volume="lots", original_currency="EUR")

        with pytest.raises(SerializationFailed):
            encode_transaction(tx)

"""
Tests for user registration and authentication
"""

import pytest
import pytest_asyncio

from fund_ledger.async_storage import AsyncSQLiteStorage
from fund_ledger.config import LedgerConfig, get_config
from fund_ledger.errors import InvalidCredentials, InvalidRequest, NotAuthenticated
from fund_ledger.identity import Identity
from fund_ledger.users import UserManager, check_password, generate_salt, hash_password


@pytest_asyncio.fixture
async def storage():
    storage = AsyncSQLiteStorage(":memory:")
    yield storage
    await storage.close()


@pytest.fixture
def user_manager(storage):
    return UserManager(storage, LedgerConfig())


class TestPasswordHashing:
    """Test password helpers"""

    def test_salts_are_random(self):
        assert generate_salt() != generate_salt()
        assert len(generate_salt()) == 32

    def test_hash_and_check(self):
        salt = generate_salt()
        digest = hash_password("s3cret", salt)

        assert digest != "s3cret"
        assert check_password("s3cret", digest, salt)
        assert not check_password("wrong", digest, salt)

    def test_same_password_different_salt(self):
        assert hash_password("s3cret", "a" * 32) != hash_password("s3cret", "b" * 32)


class TestRegister:
    """Test UserManager.register"""

    @pytest.mark.asyncio
    async def test_defaults_to_global_config(self, storage):
        manager = UserManager(storage)
        assert manager.config is get_config()

        with pytest.raises(InvalidRequest, match="Username exceeds character limit"):
            await manager.register("a" * (get_config().username_max_length + 1), "a@example.com", "pw")

    @pytest.mark.asyncio
    async def test_register_stores_hash_not_password(self, storage, user_manager):
        user_id = await user_manager.register("alice", "alice@example.com", "s3cret")

        row = await storage.get_user(user_id)
        assert row["username"] == "alice"
        assert row["password_hash"] != "s3cret"
        assert check_password("s3cret", row["password_hash"], row["password_salt"])

    @pytest.mark.asyncio
    async def test_duplicate_username(self, user_manager):
        await user_manager.register("alice", "alice@example.com", "pw")

        with pytest.raises(InvalidRequest, match="Username already registered"):
            await user_manager.register("alice", "other@example.com", "pw")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_manager):
        await user_manager.register("alice", "alice@example.com", "pw")

        with pytest.raises(InvalidRequest, match="Email already registered"):
            await user_manager.register("bob", "alice@example.com", "pw")

    @pytest.mark.asyncio
    async def test_username_limit(self, user_manager):
        await user_manager.register("a" * 30, "long@example.com", "pw")

        with pytest.raises(InvalidRequest) as exc_info:
            await user_manager.register("a" * 31, "longer@example.com", "pw")
        assert exc_info.value.message == "Username exceeds character limit (30)"

    @pytest.mark.asyncio
    async def test_email_limit(self, user_manager):
        with pytest.raises(InvalidRequest, match="Email exceeds character limit"):
            await user_manager.register("carol", "c" * 250 + "@x.io", "pw")

    @pytest.mark.asyncio
    async def test_empty_username(self, user_manager):
        with pytest.raises(InvalidRequest):
            await user_manager.register("", "empty@example.com", "pw")


class TestAuthenticate:
    """Test UserManager.authenticate"""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, user_manager):
        user_id = await user_manager.register("alice", "alice@example.com", "s3cret")

        user = await user_manager.authenticate("alice@example.com", "s3cret")
        assert user.id == user_id
        assert user.username == "alice"

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_alike(self, user_manager):
        await user_manager.register("alice", "alice@example.com", "s3cret")

        with pytest.raises(InvalidCredentials) as unknown:
            await user_manager.authenticate("nobody@example.com", "s3cret")
        with pytest.raises(InvalidCredentials) as wrong:
            await user_manager.authenticate("alice@example.com", "wrong")

        assert unknown.value.message == wrong.value.message


class TestGetUser:
    """Test UserManager.get_user"""

    @pytest.mark.asyncio
    async def test_own_record(self, user_manager):
        user_id = await user_manager.register("alice", "alice@example.com", "s3cret")

        user = await user_manager.get_user(Identity(user_id))
        assert user.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_session_for_missing_user(self, user_manager):
        with pytest.raises(NotAuthenticated):
            await user_manager.get_user(Identity(404))

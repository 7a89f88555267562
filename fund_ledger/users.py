"""
User Accounts

Registration, credential checks and profile lookup. Passwords are hashed
with scrypt and a per-user random salt.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from .async_storage import AsyncStorageInterface
from .config import LedgerConfig, get_config
from .errors import InvalidCredentials, InvalidRequest, NotAuthenticated
from .identity import Identity
from .logging_config import get_logger, log_action
from .models import User


logger = get_logger("fund_ledger.users")


def generate_salt() -> str:
    """Generate random salt for password hashing"""
    return secrets.token_hex(16)


def hash_password(password: str, salt: str) -> str:
    """Hash password with salt using scrypt"""
    return hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1
    ).hex()


def check_password(password: str, password_hash: str, salt: str) -> bool:
    return hmac.compare_digest(hash_password(password, salt), password_hash)


class UserManager:
    """Registers users and checks their credentials"""

    def __init__(self, storage: AsyncStorageInterface, config: Optional[LedgerConfig] = None):
        self.storage = storage
        self.config = config or get_config()

    async def register(self, username: str, email: str, password: str) -> int:
        """Create a user; usernames and emails are unique"""
        if not username:
            raise InvalidRequest("Username must not be empty")
        if len(username) > self.config.username_max_length:
            raise InvalidRequest(
                f"Username exceeds character limit ({self.config.username_max_length})"
            )
        if len(email) > self.config.email_max_length:
            raise InvalidRequest(
                f"Email exceeds character limit ({self.config.email_max_length})"
            )

        existing = await self.storage.find_users_by_username_or_email(username, email)
        if existing:
            if any(row['username'] == username for row in existing):
                raise InvalidRequest("Username already registered")
            raise InvalidRequest("Email already registered")

        salt = generate_salt()
        user_id = await self.storage.create_user(username, email, hash_password(password, salt), salt)

        log_action(logger, "info", "User registered", user_id=user_id, action="register", resource="user")
        return user_id

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user whose credentials match"""
        row = await self.storage.get_user_by_email(email)
        if row is None:
            log_action(logger, "info", "Email was not recognised", action="login_failed", resource="user")
            raise InvalidCredentials()

        user = User.from_row(row)
        if not check_password(password, user.password_hash, user.password_salt):
            log_action(
                logger, "info", "Password was incorrect",
                user_id=user.id, action="login_failed", resource="user"
            )
            raise InvalidCredentials()

        log_action(logger, "info", "User logged in", user_id=user.id, action="login", resource="user")
        return user

    async def get_user(self, identity: Identity) -> User:
        """The caller's own record; a deleted user counts as logged out"""
        row = await self.storage.get_user(identity.user_id)
        if row is None:
            raise NotAuthenticated()
        return User.from_row(row)

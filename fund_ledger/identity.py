"""
Session Identity

Sessions are HS256-signed tokens carried in a cookie. The token stores at
most one user id; resolving it yields an immutable ``Identity`` that is
passed explicitly into every operation.
"""

from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt

from .config import LedgerConfig, get_config
from .errors import NotAuthenticated, SessionCorrupted


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of one request"""
    user_id: int


def issue_session(user_id: int, config: Optional[LedgerConfig] = None) -> str:
    """Mint a session handle storing ``user_id``"""
    config = config or get_config()
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "iat": now,
        "exp": now + timedelta(hours=config.session_expiry_hours),
    }
    return jwt.encode(payload, config.session_secret, algorithm=config.session_algorithm)


def resolve_identity(session: Optional[str], config: Optional[LedgerConfig] = None) -> Identity:
    """
    Extract the caller's identity from a session handle.

    Raises:
        NotAuthenticated: no handle, an expired one, or one without a user id
        SessionCorrupted: the handle cannot be decoded
    """
    if not session:
        raise NotAuthenticated()

    config = config or get_config()
    try:
        payload = jwt.decode(session, config.session_secret, algorithms=[config.session_algorithm])
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated()
    except jwt.InvalidTokenError:
        raise SessionCorrupted()

    user_id = payload.get("user_id")
    if user_id is None:
        raise NotAuthenticated()
    # bool is an int subclass but never a valid id
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id < 0:
        raise SessionCorrupted()

    return Identity(user_id=user_id)

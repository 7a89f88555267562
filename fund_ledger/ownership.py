"""
Ownership Verification

Decides whether the caller may act on a scope. The effective owner of a
fund source is its ``user_id`` column; the effective owner of a budget is
the owner of its parent fund source.

A scope that does not exist and a scope owned by someone else are
rejected with the same ``Denied`` error. The reason is only logged.
"""

from dataclasses import dataclass

from .async_storage import AsyncStorageInterface
from .errors import Denied
from .identity import Identity
from .logging_config import get_logger, log_action
from .scope import Scope


logger = get_logger("fund_ledger.ownership")


@dataclass(frozen=True)
class AuthorizedScope:
    """A scope that passed ownership verification for ``user_id``"""
    scope: Scope
    user_id: int


async def verify_owner(storage: AsyncStorageInterface, scope: Scope,
                       identity: Identity) -> AuthorizedScope:
    """
    Verify that ``identity`` owns ``scope``.

    Returns:
        AuthorizedScope to hand to ledger operations

    Raises:
        Denied: scope missing or not owned by the caller
    """
    owner = await scope.resolve_owner(storage)

    if owner is None:
        log_action(
            logger, "warning", "Ownership check failed",
            user_id=identity.user_id, action="verify_owner", resource=str(scope),
            extra={"reason": "missing"}
        )
        raise Denied()

    if owner != identity.user_id:
        log_action(
            logger, "warning", "Ownership check failed",
            user_id=identity.user_id, action="verify_owner", resource=str(scope),
            extra={"reason": "not_owner"}
        )
        raise Denied()

    return AuthorizedScope(scope=scope, user_id=identity.user_id)

"""
Application context and authentication dependencies
"""

from typing import Optional

from fastapi import Depends, Request

from ..async_storage import AsyncStorageInterface, create_async_storage
from ..config import LedgerConfig, get_config
from ..fund_sources import FundSourceManager
from ..identity import Identity, resolve_identity
from ..ledger import LedgerService
from ..ownership import AuthorizedScope, verify_owner
from ..scope import resolve_scope
from ..users import UserManager


class LedgerSystem:
    """Fund ledger with all components initialized"""

    def __init__(self, storage: Optional[AsyncStorageInterface] = None,
                 config: Optional[LedgerConfig] = None):
        self.config = config or get_config()
        self.storage = storage or create_async_storage(self.config)

        self.ledger = LedgerService(self.storage, page_size=self.config.transaction_page_size)
        self.user_manager = UserManager(self.storage, self.config)
        self.fund_source_manager = FundSourceManager(self.storage, self.ledger)

    async def start(self) -> None:
        await self.storage.initialize()

    async def stop(self) -> None:
        await self.storage.close()


# Dependency to get ledger system
def get_ledger_system(request: Request) -> LedgerSystem:
    return request.app.state.ledger_system


def get_session_handle(
    request: Request,
    system: LedgerSystem = Depends(get_ledger_system)
) -> Optional[str]:
    """Raw session handle from the cookie, if any"""
    return request.cookies.get(system.config.session_cookie_name)


def get_identity(
    session: Optional[str] = Depends(get_session_handle),
    system: LedgerSystem = Depends(get_ledger_system)
) -> Identity:
    """Dependency that resolves the calling user from the session cookie"""
    return resolve_identity(session, system.config)


async def authorize_scope(system: LedgerSystem, session: Optional[str],
                          path_type: str, path_id: str) -> AuthorizedScope:
    """
    Parse the scope from the path, identify the caller and check ownership,
    in that order.
    """
    scope = resolve_scope(path_type, path_id)
    identity = resolve_identity(session, system.config)
    return await verify_owner(system.storage, scope, identity)

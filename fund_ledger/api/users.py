"""
User registration and session endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .auth import LedgerSystem, get_identity, get_ledger_system
from .schemas import CreateUserRequest, LoginRequest
from ..codec import encode_user
from ..identity import Identity, issue_session


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Register a new user"""
    user_id = await system.user_manager.register(
        username=request.username,
        email=request.email,
        password=request.password
    )
    return {"id": user_id, "message": "User created"}


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Check credentials and store the user id in the session cookie"""
    user = await system.user_manager.authenticate(request.email, request.password)

    config = system.config
    response.set_cookie(
        key=config.session_cookie_name,
        value=issue_session(user.id, config),
        max_age=config.session_expiry_hours * 3600,
        httponly=True,
        secure=config.session_cookie_secure,
        samesite="lax"
    )
    return {"message": "Logged in"}


@router.post("/logout")
async def logout(
    response: Response,
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Drop the session cookie"""
    response.delete_cookie(system.config.session_cookie_name)
    return {"message": "Logged out"}


@router.get("")
async def get_user_details(
    identity: Identity = Depends(get_identity),
    system: LedgerSystem = Depends(get_ledger_system)
):
    """Get the logged in user's details"""
    user = await system.user_manager.get_user(identity)
    return encode_user(user)

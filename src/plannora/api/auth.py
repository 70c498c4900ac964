"""Auth API — registration, login, logout, profile.

Learn: Routes for the account lifecycle:
- POST /auth/register → create account, returns user + token, sets cookie
- POST /auth/login → email/password → user + token, sets cookie
- POST /auth/logout → clears the cookie (tokens are stateless)
- GET /auth/profile → current user

Browser clients rely on the httpOnly cookie; other clients take `token`
from the body and send it as a Bearer header.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from plannora.auth.dependencies import CurrentIdentity, get_current_user
from plannora.auth.jwt import create_access_token
from plannora.config import settings
from plannora.db.engine import get_db
from plannora.db.models import User
from plannora.errors import AuthenticationError
from plannora.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserRead
from plannora.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.token_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )


def _session_response(user: User, response: Response) -> AuthResponse:
    token = create_access_token(str(user.id))
    _set_session_cookie(response, token)
    return AuthResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=user.created_at,
        token=token,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    svc: UserService = Depends(_svc),
):
    """Create a new user account and start a session."""
    user = await svc.register(name=body.name, email=body.email, password=body.password)
    return _session_response(user, response)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    svc: UserService = Depends(_svc),
):
    """Login with email and password."""
    user = await svc.authenticate(body.email, body.password)
    return _session_response(user, response)


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie. The token itself stays valid until expiry."""
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return {"message": "Logged out successfully"}


# ─── Current user ───────────────────────────────────────


@router.get("/profile", response_model=UserRead)
async def get_profile(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Get the current authenticated user's profile."""
    user = await svc.find_by_id(identity.user_id)
    if user is None:
        raise AuthenticationError()
    return user

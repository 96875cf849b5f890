"""
api/routes/v2/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /auth/register   -- create an account; 201 {message, user}
  POST /auth/login      -- exchange email + password for a bearer token
  GET  /auth/me         -- verified claims of the caller's token (requires auth)

Security:
  UserStore.authenticate() equalizes timing between unknown email and wrong
  password -- use it, never inline get_by_email() + verify_password().
  Both failures produce the same 401 body.
  Cache-Control: no-store on login responses so tokens are never cached.

register and login are sync handlers: bcrypt is CPU-bound, so FastAPI runs
them in the worker thread pool instead of on the event loop.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse, UserPublic
from auth.dependencies import get_current_claims
from auth.models import Claims
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import get_settings
from core.errors import RegistrationDisabledError

# Auth policy:
# - POST /auth/register: public (unless SELF_REGISTRATION_ENABLED=false)
# - POST /auth/login:    public -- login endpoint must be unauthenticated
# - GET  /auth/me:       requires auth (get_current_claims)
router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: Optional[RegisterRequest] = None) -> RegisterResponse:
    """Register a new user.

    Any role may be requested, including admin -- there is no approval step.
    Operators who need to close this set SELF_REGISTRATION_ENABLED=false.
    A request without a body is treated as one with every field absent.
    """
    if not get_settings().self_registration_enabled:
        raise RegistrationDisabledError()
    user_store: UserStore = request.app.state.user_store
    if body is None:
        body = RegisterRequest()
    user = user_store.register(body.name, body.email, body.password, body.role)
    return RegisterResponse(message="User registered successfully", user=UserPublic.from_user(user))


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: Optional[LoginRequest] = None) -> JSONResponse:
    """Authenticate with email and password and return a signed bearer token."""
    user_store: UserStore = request.app.state.user_store
    if body is None:
        body = LoginRequest()
    user = user_store.authenticate(body.email, body.password)

    token = create_access_token(user.id, user.role)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, expires_in=get_settings().token_expire_seconds).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(claims: Claims = Depends(get_current_claims)) -> MeResponse:
    """Return what the caller's token says about them. No store lookup."""
    return MeResponse(
        user_id=claims.subject_id,
        role=claims.role,
        expires_at=claims.expires_at.isoformat(),
    )

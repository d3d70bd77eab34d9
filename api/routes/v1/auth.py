"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/login            -- password login; sets session cookie
  POST /api/v1/auth/auto-login       -- silent re-auth from a remember token
  GET  /api/v1/auth/check-login      -- is the request's session live?
  GET  /api/v1/auth/check-remember   -- does a live remember entry exist?
  GET  /api/v1/auth/me               -- current identity (requires auth)
  POST /api/v1/auth/logout           -- forget remember entries, clear cookie

Errors raised by AuthService (UserNotExist, IncorrectPassword, TokenNotFound,
StoreUnavailable) are not caught here. The AuthError handler in api/main.py
turns them into the standard error envelope with the status each kind
carries.

Security:
  Cache-Control: no-store on every response that carries a session token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.models import CheckResponse, LoginRequest, LoginResponse, MeResponse
from auth.dependencies import current_token, get_auth_service, get_current_identity
from auth.models import Identity, LoginResult
from auth.tokens import set_auth_cookie
from core.errors import StoreUnavailable

logger = logging.getLogger("loginkeep.api")

# Auth policy:
# - POST /api/v1/auth/login:          public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/auto-login:     public -- the remember token is the credential
# - GET  /api/v1/auth/check-login:    public -- answers false when unauthenticated
# - GET  /api/v1/auth/check-remember: public -- answers false for unknown tokens
# - POST /api/v1/auth/logout:         public -- clearing a cookie needs no prior auth
# - GET  /api/v1/auth/me:             requires auth (get_current_identity)
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; set the session cookie.

    With remember=true the returned token is also a remember token: pass it
    to POST /auth/auto-login within 7 days to get a fresh session without
    re-entering the password. remembered=false in the response means the
    remember entry could not be written.
    """
    result = get_auth_service(request).login(body.username, body.password, remember=body.remember)
    return _session_response(result)


@router.post("/auth/auto-login", response_model=LoginResponse)
def auto_login(request: Request, token: str = Query(min_length=1, max_length=4096)) -> JSONResponse:
    """Exchange a remember token for a new session.

    The returned token is a session token only (remembered=false). Keep the
    remember token for the next auto-login and for logout.
    """
    result = get_auth_service(request).reauth(token)
    return _session_response(result)


@router.get("/auth/check-login", response_model=CheckResponse)
def check_login(request: Request) -> CheckResponse:
    return CheckResponse(result=get_auth_service(request).is_logged_in(current_token(request)))


@router.get("/auth/check-remember", response_model=CheckResponse)
def check_remember(request: Request, token: str = Query(min_length=1, max_length=4096)) -> CheckResponse:
    return CheckResponse(result=get_auth_service(request).check_remember(token))


@router.get("/auth/me", response_model=MeResponse)
def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(user_id=identity.user_id, username=identity.username)


@router.post("/auth/logout")
def logout(request: Request, token: str | None = Query(default=None, max_length=4096)) -> JSONResponse:
    """Forget remember entries and clear the cookie.

    The entry keyed by the current session token is always forgotten. After
    an auto-login the cookie holds a fresh session token, so clients pass the
    remember token they hold as ?token= to revoke it as well.

    A remember-store outage does not block logout; the entry then simply
    expires on its own.
    """
    service = get_auth_service(request)
    for candidate in {current_token(request), token} - {None, ""}:
        try:
            service.forget(candidate)
        except StoreUnavailable as exc:
            logger.warning("Logout could not remove remember entry: %s", exc)
    resp = JSONResponse(content={"message": "Logged out."})
    resp.delete_cookie("access_token")
    return resp


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session_response(result: LoginResult) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=LoginResponse.from_result(result).model_dump())
    set_auth_cookie(resp, result.token)
    resp.headers["Cache-Control"] = "no-store"
    return resp

"""
auth/dependencies.py -- FastAPI Depends() helpers for sessions.

The session token of the in-flight request is read from, in priority order:
  1. the "access_token" cookie -- set by POST /auth/login and /auth/auto-login.
  2. an Authorization: Bearer <token> header -- API clients.

current_token() is the soft variant (returns None when neither is present).
get_current_identity() raises HTTP 401 if the request has no live session.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.service import AuthService
from core.errors import TokenNotFound, UserNotExist


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def current_token(request: Request) -> str | None:
    """Return the session token carried by this request, or None."""
    token: str | None = request.cookies.get("access_token")
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
    return token or None


def get_current_identity(request: Request) -> Identity:
    """Require a live session. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(identity: Identity = Depends(get_current_identity)): ...
    """
    service = get_auth_service(request)
    try:
        return service.current_identity(current_token(request))
    except (TokenNotFound, UserNotExist) as exc:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        ) from exc

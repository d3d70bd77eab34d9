"""
auth/sessions.py -- Session issuance.

SessionIssuer hands out session tokens for user ids the caller has already
confirmed against the credential store. issue() returns the token directly;
there is no "current token" ambient state to read back afterwards. The token
of the in-flight HTTP request is found by auth.dependencies.current_token().

Tokens are stateless HS256 JWTs (see auth/tokens.py), so issuing for the same
user from two requests at once needs no coordination -- each call gets its
own jti and therefore its own token.
"""

from __future__ import annotations

import logging

from auth.tokens import create_session_token, decode_session_token
from core.config import Settings

logger = logging.getLogger("loginkeep.auth")


class SessionIssuer:
    """Issue and check session tokens.

    Usage:
        sessions = SessionIssuer.from_settings(get_settings())
        token = sessions.issue(user.id)
        sessions.resolve(token)   # -> user.id, or None once expired
    """

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self.secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionIssuer:
        return cls(secret_key=settings.secret_key, expire_seconds=settings.token_expire_seconds)

    def issue(self, user_id: int) -> str:
        token = create_session_token(user_id, secret_key=self.secret_key, expire_seconds=self.expire_seconds)
        logger.debug("Issued session for user_id=%s tok=%s…", user_id, token[-8:])
        return token

    def resolve(self, token: str) -> int | None:
        """Return the user id bound to a live token, or None."""
        if not token:
            return None
        payload = decode_session_token(token, secret_key=self.secret_key)
        if payload is None:
            return None
        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            return None

    def is_active(self, token: str) -> bool:
        return self.resolve(token) is not None

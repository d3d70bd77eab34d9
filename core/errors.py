"""
core/errors.py -- Error kinds raised by the authentication core.

Pattern: one exception class per failure kind, all under AuthError. Each
class carries a stable machine-readable code and the HTTP status the
transport layer should use, so api/main.py maps the whole hierarchy with a
single exception handler instead of one branch per kind.

None of these are recovered inside the core. "Not found" is never defaulted
to something else -- it propagates as UserNotExist or TokenNotFound.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or cache/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure the authentication core reports."""

    code: str = "auth_error"
    status_code: int = 400
    message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class UserNotExist(AuthError):
    """No usable user record for the given username or id."""

    code = "user_not_exist"
    status_code = 401
    message = "User does not exist."


class IncorrectPassword(AuthError):
    """The user exists but the password did not verify."""

    code = "incorrect_password"
    status_code = 401
    message = "Incorrect password."


class TokenNotFound(AuthError):
    """Remember token (or session token) is absent, expired, or unusable."""

    code = "token_not_found"
    status_code = 401
    message = "Token not found or expired."


class StoreUnavailable(AuthError):
    """A backing store could not be reached. Never retried by the core."""

    code = "store_unavailable"
    status_code = 503
    message = "A backing store is unavailable."

    def __init__(self, store: str, message: str | None = None) -> None:
        self.store = store
        super().__init__(message or f"The {store} store is unavailable.")

"""
auth/service.py -- Login orchestration and silent re-authentication.

AuthService composes three collaborators, all injected:

  users     -- credential store: find_by_username / find_by_id
  remember  -- TTL key-value store: set / get / exists / delete
  sessions  -- SessionIssuer: issue / resolve / is_active

Failures are raised as the core.errors hierarchy and abort the operation
before any session is issued. The one recovered failure is the remember
write during login: the session is already issued at that point, so a
remember-store outage is logged and reported as remembered=False rather
than failing a login whose credentials were correct.

Remember entries are keyed by REMEMBER_KEY_PREFIX + the very session token
returned by login(). The session is issued first and the entry is written
for that token, so the two are identical by construction.

Layer rule: no imports from api/ or cache/.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from auth.models import Identity, LoginResult, UserRecord
from auth.sessions import SessionIssuer
from auth.tokens import verify_against_dummy, verify_password
from core.errors import IncorrectPassword, StoreUnavailable, TokenNotFound, UserNotExist

logger = logging.getLogger("loginkeep.auth")

REMEMBER_TTL_SECONDS = 7 * 24 * 60 * 60


class CredentialStore(Protocol):
    def find_by_username(self, username: str) -> UserRecord | None: ...

    def find_by_id(self, user_id: int) -> UserRecord | None: ...


class KeyValueStore(Protocol):
    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def get(self, key: str) -> Any | None: ...

    def exists(self, key: str) -> bool: ...

    def delete(self, key: str) -> bool: ...


def _usable(user: UserRecord | None) -> bool:
    # A record with an id but no username is treated as missing.
    return user is not None and user.id is not None and bool(user.username)


def _parse_user_id(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdecimal():
        return int(raw)
    return None


class AuthService:
    """Authenticate users and issue sessions.

    Usage:
        service = AuthService(user_store, remember_store, SessionIssuer.from_settings(settings))
        result = service.login("alice", "secret", remember=True)
        later = service.reauth(result.token)
    """

    def __init__(
        self,
        users: CredentialStore,
        remember: KeyValueStore,
        sessions: SessionIssuer,
        remember_key_prefix: str = "login:remember:",
    ) -> None:
        self.users = users
        self.remember = remember
        self.sessions = sessions
        self.remember_key_prefix = remember_key_prefix

    def remember_key(self, token: str) -> str:
        return f"{self.remember_key_prefix}{token}"

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, username: str, password: str, remember: bool = False) -> LoginResult:
        """Verify a username/password pair and issue a session.

        Raises:
            UserNotExist:      no usable record for username.
            IncorrectPassword: the record exists but the password does not verify.
            StoreUnavailable:  the credential store could not be reached.
        """
        user = self.users.find_by_username(username)
        if not _usable(user):
            # Same KDF cost as a real verification, whatever the outcome.
            verify_against_dummy(password)
            logger.warning("Login failed: no such user %r", username)
            raise UserNotExist()

        if not verify_password(password, user.salt, user.password_hash):
            logger.warning("Login failed: incorrect password for user_id=%s", user.id)
            raise IncorrectPassword()

        token = self.sessions.issue(user.id)
        remembered = remember and self._write_remember_entry(token, user.id)
        logger.info("Login succeeded for user_id=%s (remember=%s, remembered=%s)", user.id, remember, remembered)
        return LoginResult(identity=Identity(user.id, user.username), token=token, remembered=remembered)

    def _write_remember_entry(self, token: str, user_id: int) -> bool:
        try:
            self.remember.set(self.remember_key(token), user_id, REMEMBER_TTL_SECONDS)
        except StoreUnavailable as exc:
            logger.warning("Remember entry not written for user_id=%s: %s", user_id, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Silent re-auth
    # ------------------------------------------------------------------

    def reauth(self, remember_token: str) -> LoginResult:
        """Resolve a remember token to its user and issue a fresh session.

        The password is not re-checked. The remember entry stays in place
        until its own TTL runs out or forget(remember_token) drops it, and
        the returned session token is not itself a remember token
        (remembered=False).

        Raises:
            TokenNotFound:    no live entry for remember_token.
            UserNotExist:     the entry points at a user that no longer exists.
            StoreUnavailable: a store could not be reached.
        """
        if not remember_token:
            raise TokenNotFound()
        raw = self.remember.get(self.remember_key(remember_token))
        if raw is None:
            logger.warning("Re-auth failed: remember token …%s not found", remember_token[-8:])
            raise TokenNotFound()

        user_id = _parse_user_id(raw)
        if user_id is None:
            logger.warning("Re-auth failed: remember entry holds %r, not a user id", raw)
            raise TokenNotFound()

        user = self.users.find_by_id(user_id)
        if not _usable(user):
            logger.warning("Re-auth failed: user_id=%s no longer exists", user_id)
            raise UserNotExist()

        # The new session gets no entry of its own; remember_token stays the
        # credential for the next re-auth.
        token = self.sessions.issue(user.id)
        logger.info("Re-auth succeeded for user_id=%s", user.id)
        return LoginResult(identity=Identity(user.id, user.username), token=token, remembered=False)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_remember(self, token: str) -> bool:
        """True if a live remember entry exists for token."""
        if not token:
            return False
        return self.remember.exists(self.remember_key(token))

    def is_logged_in(self, token: str | None) -> bool:
        return bool(token) and self.sessions.is_active(token)

    def current_identity(self, token: str | None) -> Identity:
        """Identity behind a live session token.

        Raises TokenNotFound when the session is missing or expired, and
        UserNotExist when its user has since been removed.
        """
        user_id = self.sessions.resolve(token) if token else None
        if user_id is None:
            raise TokenNotFound("Session not found or expired.")
        user = self.users.find_by_id(user_id)
        if not _usable(user):
            raise UserNotExist()
        return Identity(user.id, user.username)

    def forget(self, token: str) -> bool:
        """Drop the remember entry for token. Returns True if one existed."""
        if not token:
            return False
        removed = self.remember.delete(self.remember_key(token))
        if removed:
            logger.info("Remember entry …%s removed", token[-8:])
        return removed

"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic) -- dataclasses own the
domain shape; stores and the service do the work.

Layer rule: no imports from api/ or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class UserRecord:
    """A user as held by the credential store. Read-only to the auth core.

    password_hash is the self-describing form produced by
    auth.tokens.hash_password(); salt is the per-user random value that was
    mixed into it.
    """

    username: str
    password_hash: str
    salt: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login or silent re-auth.

    remembered is True when a live remember entry is keyed by token's
    remember key, i.e. a login with remember=True whose store write
    succeeded. A re-auth always reports False: its session token is not a
    remember token.
    """

    identity: Identity
    token: str
    remembered: bool = False

"""
auth/tokens.py -- Salted password hashing, session JWT, and cookie utilities.

Security design decisions:
  Passwords: bcrypt-pbkdf (bcrypt.kdf) keyed by a per-user salt that the
       credential store keeps next to the hash. The derivation is
       deterministic for a given (candidate, salt, rounds), and the result is
       compared with hmac.compare_digest so response time does not reveal how
       many leading bytes matched. Stored form:

           bcrypt-pbkdf$<rounds>$<hex digest>

       Rounds live inside the stored hash, so raising PASSWORD_KDF_ROUNDS only
       affects hashes computed afterwards.

       _DUMMY_HASH enables timing equalization in AuthService.login() so an
       unknown username costs the same KDF work as a wrong password.

  JWT: python-jose with HS256. Tokens carry the user id as "sub", a random
       "jti" (two sessions issued in the same second never collide) and an
       expiry. Verification returns None on any failure -- callers decide
       what that means.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses short
       or missing keys outside dev mode.

Layer rule: no imports from api/ or cache/. Import from core/ is allowed.
"""

from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

_KDF_SCHEME = "bcrypt-pbkdf"
_KDF_KEY_BYTES = 32
# Upper bound on rounds accepted from a stored hash. A corrupted or planted
# record must not be able to pin a worker on a single verification.
_KDF_MAX_ROUNDS = 4096

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def generate_salt() -> str:
    """Return a fresh per-user salt: 16 random bytes as 32 hex characters."""
    return secrets.token_hex(16)


def hash_password(plain: str, salt: str, rounds: int | None = None) -> str:
    """Derive the stored hash for plain under salt.

    Raises ValueError for an empty password or salt -- bcrypt.kdf cannot
    derive from either, and a stored hash that can never verify is a bug at
    the call site.
    """
    if not plain or not salt:
        raise ValueError("password and salt must be non-empty")
    rounds = rounds or _settings.password_kdf_rounds
    digest = bcrypt.kdf(
        password=plain.encode("utf-8"),
        salt=salt.encode("utf-8"),
        desired_key_bytes=_KDF_KEY_BYTES,
        rounds=rounds,
        ignore_few_rounds=True,
    )
    return f"{_KDF_SCHEME}${rounds}${digest.hex()}"


def verify_password(candidate: str, salt: str, stored_hash: str) -> bool:
    """Return True if candidate, salted with salt, reproduces stored_hash.

    A mismatch is a normal False, never an exception. Empty inputs and
    malformed stored hashes are mismatches too.
    """
    if not candidate or not salt or not stored_hash:
        return False
    try:
        scheme, rounds_str, _digest = stored_hash.split("$")
        rounds = int(rounds_str)
    except ValueError:
        return False
    if scheme != _KDF_SCHEME or not 1 <= rounds <= _KDF_MAX_ROUNDS:
        return False
    try:
        derived = hash_password(candidate, salt, rounds=rounds)
    except ValueError:
        # Unencodable input (e.g. lone surrogates from a JSON body).
        return False
    return hmac.compare_digest(derived.encode("utf-8"), stored_hash.encode("utf-8"))


# Timing equalization dummy. Computed once at module load so the first
# unknown-username login is not measurably slower than later ones.
_DUMMY_SALT: str = generate_salt()
_DUMMY_HASH: str = hash_password("loginkeep_timing_dummy", _DUMMY_SALT)


def verify_against_dummy(candidate: str) -> None:
    """Spend one verification's worth of KDF work on a throwaway hash."""
    verify_password(candidate or "-", _DUMMY_SALT, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session JWT encode / decode
# ---------------------------------------------------------------------------


def create_session_token(user_id: int, secret_key: str = "", expire_seconds: int = 0) -> str:
    """Encode a signed session JWT bound to user_id.

    Args:
        user_id:        Credential-store id of the authenticated user.
        secret_key:     Signing key. Empty means Settings.secret_key.
        expire_seconds: Session duration. 0 means Settings.token_expire_seconds.
    """
    now = datetime.now(timezone.utc)
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    payload = {
        "sub": str(user_id),
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, secret_key or _settings.secret_key, algorithm=_ALGORITHM)


def decode_session_token(token: str, secret_key: str = "") -> dict | None:
    """Decode and verify a session JWT. Returns the payload or None on any failure."""
    try:
        payload = jwt.decode(token, secret_key or _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "sub" not in payload or "jti" not in payload:
        return None
    return payload


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        "access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )

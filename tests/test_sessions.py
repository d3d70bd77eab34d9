"""Unit tests for auth/sessions.py -- SessionIssuer.

Covers:
- issue() returns a token that resolve() maps back to the user id
- tokens issued for the same user are distinct
- expired, tampered, foreign-key, and garbage tokens are not active
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from auth.sessions import SessionIssuer


def test_issue_then_resolve(sessions: SessionIssuer):
    token = sessions.issue(7)
    assert isinstance(token, str) and token
    assert sessions.resolve(token) == 7
    assert sessions.is_active(token) is True


def test_each_issue_is_distinct(sessions: SessionIssuer):
    tokens = {sessions.issue(7) for _ in range(25)}
    assert len(tokens) == 25


def test_expired_token_is_inactive(sessions: SessionIssuer):
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode({"sub": "7", "jti": "x", "exp": past}, sessions.secret_key, algorithm="HS256")
    assert sessions.resolve(token) is None
    assert sessions.is_active(token) is False


def test_token_signed_with_other_key_is_inactive(sessions: SessionIssuer):
    other = SessionIssuer(secret_key="another-secret-key-of-at-least-32-chars", expire_seconds=3600)
    assert sessions.is_active(other.issue(7)) is False


def test_tampered_token_is_inactive(sessions: SessionIssuer):
    head, _body, sig = sessions.issue(7).split(".")
    _head, other_body, _sig = sessions.issue(8).split(".")
    tampered = ".".join([head, other_body, sig])
    assert sessions.is_active(tampered) is False


def test_token_without_jti_is_inactive(sessions: SessionIssuer):
    future = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "7", "exp": future}, sessions.secret_key, algorithm="HS256")
    assert sessions.is_active(token) is False


def test_non_numeric_subject_is_inactive(sessions: SessionIssuer):
    future = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "alice", "jti": "x", "exp": future}, sessions.secret_key, algorithm="HS256")
    assert sessions.resolve(token) is None


def test_garbage_and_empty_tokens(sessions: SessionIssuer):
    assert sessions.is_active("not-a-jwt") is False
    assert sessions.is_active("") is False

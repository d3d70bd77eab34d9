"""
auth/store.py -- SQLAlchemy Core credential store.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. The auth service never touches SQL directly.

Contract consumed by AuthService:
  find_by_username(username) -> UserRecord | None
  find_by_id(user_id)        -> UserRecord | None

Security:
  All queries use bound parameters. No f-strings in SQL.

Failure mode:
  sqlalchemy OperationalError (database missing, locked, unreachable) is
  raised as StoreUnavailable("credential"). Other SQLAlchemy errors are bugs
  and propagate unchanged.

DB path: auth/loginkeep_auth.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or cache/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from auth.models import UserRecord
from core.errors import StoreUnavailable

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),  # bcrypt-pbkdf$<rounds>$<hex>
    Column("salt", String(64), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserRecord entities.

    Usage:
        store = UserStore()
        salt = generate_salt()
        store.create_user("alice", hash_password("secret", salt), salt)
        user = store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except OperationalError as exc:
            raise StoreUnavailable("credential") from exc

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> UserRecord | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.username == username))

    def find_by_id(self, user_id: int) -> UserRecord | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.id == user_id))

    def has_users(self) -> bool:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        except OperationalError as exc:
            raise StoreUnavailable("credential") from exc
        return (result or 0) > 0

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def create_user(self, username: str, password_hash: str, salt: str) -> int:
        """Insert a user record and return its assigned id.

        Seeding only -- account creation is not an authentication concern.
        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        password_hash=password_hash,
                        salt=salt,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
        except OperationalError as exc:
            raise StoreUnavailable("credential") from exc
        return result.inserted_primary_key[0]

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, stmt) -> UserRecord | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).fetchone()
        except OperationalError as exc:
            raise StoreUnavailable("credential") from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        salt=row.salt,
        created_at=row.created_at,
    )

# medstock/services/session_service.py
"""
Server-side login sessions.

A session is an opaque token (held by the client in a cookie) mapped to a
record with a logged_in flag and a fixed expiry. Records live in the
database by default, or in Redis when SESSION_BACKEND=redis; both survive
process restarts.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

import redis
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from medstock.core.exceptions import StorageError
from medstock.core.security import generate_session_token
from medstock.models.session import LoginSession
from medstock.services.auth_service import authenticate_admin
from medstock.utils.datetime_utils import as_utc, parse_iso_string, utc_now

logger = logging.getLogger(__name__)

MAX_TOKEN_LENGTH = 64
REDIS_KEY_PREFIX = "session:"


class SessionState(str, Enum):
    ANONYMOUS = "ANONYMOUS"
    AUTHENTICATED = "AUTHENTICATED"


@dataclass
class SessionRecord:
    token: str
    logged_in: bool
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(self.expires_at) <= (now or utc_now())


class SessionStore(Protocol):
    def save(self, record: SessionRecord) -> None: ...

    def load(self, token: str) -> SessionRecord | None: ...

    def delete(self, token: str) -> None: ...


class DatabaseSessionStore:
    """
    Sessions in the `sessions` table.

    Each call uses its own short-lived DB session so that session reads and
    writes never share a transaction with the request's inventory work.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def save(self, record: SessionRecord) -> None:
        with self._session_factory() as db:
            try:
                db.merge(
                    LoginSession(
                        token=record.token,
                        logged_in=record.logged_in,
                        created_at=record.created_at,
                        expires_at=record.expires_at,
                    )
                )
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Failed to save session")
                raise StorageError("Failed to create session.") from exc

    def load(self, token: str) -> SessionRecord | None:
        with self._session_factory() as db:
            row = db.get(LoginSession, token)
            db.commit()
            if not row:
                return None
            return SessionRecord(
                token=row.token,
                logged_in=row.logged_in,
                created_at=row.created_at,
                expires_at=row.expires_at,
            )

    def delete(self, token: str) -> None:
        with self._session_factory() as db:
            try:
                db.execute(delete(LoginSession).where(LoginSession.token == token))
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Failed to delete session")
                raise StorageError() from exc

    def purge_expired(self) -> int:
        """Delete every expired session row. Returns the number removed."""
        with self._session_factory() as db:
            try:
                result = db.execute(
                    delete(LoginSession).where(LoginSession.expires_at <= utc_now())
                )
                db.commit()
                return result.rowcount or 0
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Failed to purge expired sessions")
                raise StorageError() from exc


class RedisSessionStore:
    """Sessions as JSON blobs under session:<token>, expiring with the session."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @staticmethod
    def _key(token: str) -> str:
        return f"{REDIS_KEY_PREFIX}{token}"

    def save(self, record: SessionRecord) -> None:
        ttl = int((as_utc(record.expires_at) - utc_now()).total_seconds())
        payload = json.dumps(
            {
                "logged_in": record.logged_in,
                "created_at": as_utc(record.created_at).isoformat(),
                "expires_at": as_utc(record.expires_at).isoformat(),
            }
        )
        try:
            self._client.setex(self._key(record.token), max(ttl, 1), payload)
        except redis.RedisError as exc:
            logger.exception("Failed to save session to Redis")
            raise StorageError("Failed to create session.") from exc

    def load(self, token: str) -> SessionRecord | None:
        try:
            raw = self._client.get(self._key(token))
        except redis.RedisError:
            logger.warning("Redis GET failed for session lookup", exc_info=True)
            return None
        if not raw:
            return None
        try:
            data = json.loads(raw)
            return SessionRecord(
                token=token,
                logged_in=bool(data["logged_in"]),
                created_at=parse_iso_string(data["created_at"]),
                expires_at=parse_iso_string(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding corrupted session record")
            return None

    def delete(self, token: str) -> None:
        try:
            self._client.delete(self._key(token))
        except redis.RedisError as exc:
            logger.exception("Failed to delete session from Redis")
            raise StorageError() from exc


class SessionManager:
    """
    Issues, validates and destroys login sessions.

    Login always issues a fresh token and drops the one the request came
    with, so a token planted before authentication never becomes valid.
    """

    def __init__(self, store: SessionStore, ttl: timedelta):
        self.store = store
        self.ttl = ttl

    def login(self, db: Session, password: str | None, previous_token: str | None = None) -> str:
        authenticate_admin(db, password)

        if previous_token:
            self.logout(previous_token)

        now = utc_now()
        record = SessionRecord(
            token=generate_session_token(),
            logged_in=True,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.store.save(record)
        logger.info("Login successful; session issued")
        return record.token

    def logout(self, token: str | None) -> None:
        if not token or len(token) > MAX_TOKEN_LENGTH:
            return
        self.store.delete(token)
        logger.info("Session destroyed")

    def validate(self, token: str | None) -> SessionState:
        if not token or len(token) > MAX_TOKEN_LENGTH:
            return SessionState.ANONYMOUS

        try:
            record = self.store.load(token)
        except SQLAlchemyError:
            logger.warning("Session lookup failed; treating request as anonymous", exc_info=True)
            return SessionState.ANONYMOUS

        if record is None or not record.logged_in:
            return SessionState.ANONYMOUS

        if record.is_expired():
            try:
                self.store.delete(token)
            except StorageError:
                logger.warning("Could not remove expired session", exc_info=True)
            return SessionState.ANONYMOUS

        return SessionState.AUTHENTICATED

"""Server-side session stores.

A session maps an opaque token (kept client-side in a signed cookie) to a
small JSON document: ``{"userId": ..., "user": {...}}``. The user copy is
taken at login and is not refreshed afterwards.
"""
import abc
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple
import logging

from fastapi import Depends
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventfinder.config import settings
from eventfinder.database import get_db
from eventfinder.models import utcnow
from eventfinder.models.session import UserSession

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    pass


class SessionStore(abc.ABC):

    def __init__(self, max_age_seconds: int):
        self.max_age = timedelta(seconds=max_age_seconds)

    @abc.abstractmethod
    async def get(self, token: str) -> Optional[Dict[str, Any]]:
        ...

    @abc.abstractmethod
    async def set(self, token: str, data: Dict[str, Any]) -> None:
        ...

    @abc.abstractmethod
    async def destroy(self, token: str) -> None:
        ...


class MemorySessionStore(SessionStore):
    """Process-local store; sessions are lost on restart and not shared between instances."""

    def __init__(self, max_age_seconds: int):
        super().__init__(max_age_seconds)
        self._sessions: Dict[str, Tuple[datetime, Dict[str, Any]]] = {}

    async def get(self, token: str) -> Optional[Dict[str, Any]]:
        entry = self._sessions.get(token)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= utcnow():
            self._sessions.pop(token, None)
            return None
        return dict(data)

    async def set(self, token: str, data: Dict[str, Any]) -> None:
        self._prune()
        self._sessions[token] = (utcnow() + self.max_age, dict(data))

    async def destroy(self, token: str) -> None:
        self._sessions.pop(token, None)

    def _prune(self) -> None:
        now = utcnow()
        for token in [t for t, (expires_at, _) in self._sessions.items() if expires_at <= now]:
            del self._sessions[token]


class DatabaseSessionStore(SessionStore):
    """Sessions kept in the ``sessions`` table, shared by every app instance."""

    def __init__(self, db: AsyncSession, max_age_seconds: int):
        super().__init__(max_age_seconds)
        self.db = db

    async def get(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            db_session = await self.db.get(UserSession, token)
            if db_session is None:
                return None
            if db_session.expires_at <= utcnow():
                await self.db.delete(db_session)
                await self.db.commit()
                return None
            return dict(db_session.data)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error reading session: {str(e)}", exc_info=True)
            raise SessionStoreError("Could not read session.") from e

    async def set(self, token: str, data: Dict[str, Any]) -> None:
        try:
            await self.db.execute(delete(UserSession).where(UserSession.expires_at <= utcnow()))
            await self.db.merge(UserSession(
                id=token,
                user_id=data["userId"],
                data=data,
                expires_at=utcnow() + self.max_age,
            ))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error storing session for user ID {data.get('userId')}: {str(e)}", exc_info=True)
            raise SessionStoreError("Could not store session.") from e

    async def destroy(self, token: str) -> None:
        try:
            await self.db.execute(delete(UserSession).where(UserSession.id == token))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Error destroying session: {str(e)}", exc_info=True)
            raise SessionStoreError("Could not destroy session.") from e


memory_session_store = MemorySessionStore(settings.SESSION_MAX_AGE_SECONDS)


async def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    if settings.SESSION_BACKEND == "memory":
        return memory_session_store
    return DatabaseSessionStore(db, settings.SESSION_MAX_AGE_SECONDS)

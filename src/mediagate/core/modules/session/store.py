"""Session storage backends."""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from mediagate.core.modules.session.models import Session
from mediagate.errors import StoreUnavailableError


class SessionStore(ABC):
    """Keyed storage of immutable session records.

    Implementations raise StoreUnavailableError when the backend cannot be
    reached, so callers can tell "no session" from "cannot check".
    """

    async def setup(self) -> None:
        """Prepare the backend (indexes, connections)."""

    @abstractmethod
    async def insert(self, session: Session) -> None: ...

    @abstractmethod
    async def get(self, session_id: str) -> Session | None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool: ...

    @abstractmethod
    async def delete_by_subject(self, subject_id: str) -> int: ...

    @abstractmethod
    async def delete_expired(self, moment: datetime) -> int: ...

    @abstractmethod
    async def list_by_subject(self, subject_id: str) -> list[Session]: ...


class MemorySessionStore(SessionStore):
    """In-process store for single-worker deployments and tests.

    Records are frozen and replaced or removed as a whole under the lock, so a
    concurrent reader sees either the complete record or nothing.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def insert(self, session: Session) -> None:
        async with self._lock:
            if session.id in self._sessions:
                raise StoreUnavailableError("Session id collision")
            self._sessions[session.id] = session

    async def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def delete_by_subject(self, subject_id: str) -> int:
        async with self._lock:
            doomed = [sid for sid, s in self._sessions.items() if s.subject_id == subject_id]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)

    async def delete_expired(self, moment: datetime) -> int:
        async with self._lock:
            doomed = [sid for sid, s in self._sessions.items() if not s.is_valid_at(moment)]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)

    async def list_by_subject(self, subject_id: str) -> list[Session]:
        return [s for s in list(self._sessions.values()) if s.subject_id == subject_id]


class MongoSessionStore(SessionStore):
    """MongoDB-backed store. Every operation is a single-document or single-filter call."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("sessions")

    async def setup(self) -> None:
        try:
            await self._collection.create_index([("subject_id", 1)])
            # TTL index: MongoDB removes documents once expires_at has passed
            await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)
        except PyMongoError as e:
            raise StoreUnavailableError from e

    async def insert(self, session: Session) -> None:
        try:
            await self._collection.insert_one(session.to_mongo())
        except PyMongoError as e:
            raise StoreUnavailableError from e

    async def get(self, session_id: str) -> Session | None:
        try:
            doc = await self._collection.find_one({"_id": session_id})
        except PyMongoError as e:
            raise StoreUnavailableError from e
        return Session.from_mongo(doc)

    async def delete(self, session_id: str) -> bool:
        try:
            result = await self._collection.delete_one({"_id": session_id})
        except PyMongoError as e:
            raise StoreUnavailableError from e
        return result.deleted_count > 0

    async def delete_by_subject(self, subject_id: str) -> int:
        try:
            result = await self._collection.delete_many({"subject_id": subject_id})
        except PyMongoError as e:
            raise StoreUnavailableError from e
        return result.deleted_count

    async def delete_expired(self, moment: datetime) -> int:
        try:
            result = await self._collection.delete_many({"expires_at": {"$lte": moment}})
        except PyMongoError as e:
            raise StoreUnavailableError from e
        return result.deleted_count

    async def list_by_subject(self, subject_id: str) -> list[Session]:
        try:
            return await Session.list_cursor(self._collection.find({"subject_id": subject_id}))
        except PyMongoError as e:
            raise StoreUnavailableError from e

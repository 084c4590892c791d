import asyncio
import secrets
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, TypeVar

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from mediagate.config import Config
from mediagate.core.core import Service
from mediagate.core.modules.session.models import Session
from mediagate.core.modules.session.store import MemorySessionStore, MongoSessionStore, SessionStore
from mediagate.errors import RequestTimeoutError
from mediagate.utils import now

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SessionService(Service):
    """Creates, validates and revokes browser sessions."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None) -> None:
        super().__init__(config, database)
        self.store: SessionStore = MongoSessionStore(database) if database is not None else MemorySessionStore()
        self.clock: Callable[[], datetime] = now
        self._ttl = timedelta(seconds=config.session_ttl_seconds)

    async def on_start(self) -> None:
        await self._call(self.store.setup())

    async def create_session(self, subject_id: str, user_agent: str | None = None, ip_address: str | None = None) -> Session:
        created_at = self.clock()
        session = Session(
            id=secrets.token_urlsafe(32),
            subject_id=subject_id,
            user_agent=user_agent,
            ip_address=ip_address,
            created_at=created_at,
            expires_at=created_at + self._ttl,
        )
        await self._call(self.store.insert(session))
        logger.debug("session_created", subject_id=subject_id)
        return session

    async def validate_session(self, session_id: str) -> Session | None:
        """Return the session if it exists and has not expired.

        Expired records found here are purged. Raises StoreUnavailableError when
        the store cannot be read.
        """
        if not session_id:
            return None
        session = await self._call(self.store.get(session_id))
        if session is None:
            return None
        if not session.is_valid_at(self.clock()):
            await self._call(self.store.delete(session_id))
            logger.debug("session_expired", subject_id=session.subject_id)
            return None
        return session

    async def revoke_session(self, session_id: str) -> None:
        """Remove a session. Unknown or expired ids are not an error."""
        if await self._call(self.store.delete(session_id)):
            logger.debug("session_revoked")

    async def revoke_all_for_subject(self, subject_id: str) -> int:
        count = await self._call(self.store.delete_by_subject(subject_id))
        logger.info("sessions_revoked_for_subject", subject_id=subject_id, count=count)
        return count

    async def list_sessions_for_subject(self, subject_id: str) -> list[Session]:
        moment = self.clock()
        sessions = await self._call(self.store.list_by_subject(subject_id))
        return [s for s in sessions if s.is_valid_at(moment)]

    async def sweep_expired(self) -> int:
        count = await self._call(self.store.delete_expired(self.clock()))
        if count:
            logger.info("expired_sessions_swept", count=count)
        return count

    async def _call(self, operation: Awaitable[T]) -> T:
        """Await a store operation within the configured deadline."""
        try:
            async with asyncio.timeout(self.config.store_timeout_seconds):
                return await operation
        except TimeoutError as e:
            logger.warning("session_store_timeout", timeout=self.config.store_timeout_seconds)
            raise RequestTimeoutError("Session store did not respond in time") from e

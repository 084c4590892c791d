import asyncio
from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from mediagate.config import Config
from mediagate.core.core import Service
from mediagate.core.modules.user.models import User, UserRole
from mediagate.core.modules.user.validators import validate_email, validate_password
from mediagate.errors import ConflictError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages users with an in-memory cache, persisted to MongoDB when configured."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None) -> None:
        super().__init__(config, database)
        self._collection = database.get_collection("users") if database is not None else None
        self._users: dict[UUID, User] = {}
        # Checked against when the email is unknown so both failure paths cost one bcrypt verification
        self._dummy_hash = self._hash_password("dummy-password")

    def _hash_password(self, password: str) -> bytes:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.config.bcrypt_rounds))

    def find_user_by_subject(self, subject_id: str) -> User | None:
        try:
            return self._users.get(UUID(subject_id))
        except ValueError:
            return None

    def find_user_by_email(self, email: str) -> User | None:
        normalized = email.strip().lower()
        return next((u for u in self._users.values() if u.email == normalized), None)

    def has_admin(self) -> bool:
        return any(user.role == UserRole.ADMIN for user in self._users.values())

    async def create_user(self, email: str, password: str, role: UserRole = UserRole.USER) -> User:
        """Create user with hashed password."""
        validate_email(email)
        validate_password(password)
        if self.find_user_by_email(email) is not None:
            raise ConflictError(f"User '{email}' already exists")

        password_hash = await asyncio.to_thread(self._hash_password, password)
        user = User(email=email.strip().lower(), password_hash=password_hash.decode("utf-8"), role=role)
        if self._collection is not None:
            await self._collection.insert_one(user.to_mongo())
        self._users[user.id] = user
        logger.info("user_created", user_id=user.id, role=role)
        return user

    async def verify_credentials(self, email: str, password: str) -> User | None:
        """Return the user when the password matches, None otherwise.

        Unknown emails are verified against a dummy hash so the two failures take
        the same time.
        """
        user = self.find_user_by_email(email)
        stored_hash = user.password_hash.encode("utf-8") if user is not None else self._dummy_hash
        matches = await asyncio.to_thread(bcrypt.checkpw, password.encode("utf-8"), stored_hash)
        if user is None or not matches:
            return None
        return user

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from database."""
        if self._collection is None:
            return
        users = await User.list_cursor(self._collection.find())
        self._users = {user.id: user for user in users}

    async def on_start(self) -> None:
        """Initialize indexes and cache."""
        if self._collection is not None:
            await self._collection.create_index([("email", 1)], unique=True)
        await self.update_all_users_cache()
        logger.debug("user_service_started", user_count=len(self._users))

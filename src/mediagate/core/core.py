from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from mediagate.config import Config

if TYPE_CHECKING:
    from mediagate.core.modules.access.service import AccessService
    from mediagate.core.modules.clearkey.service import ClearKeyService
    from mediagate.core.modules.manifest.service import ManifestService
    from mediagate.core.modules.media.service import MediaService
    from mediagate.core.modules.session.service import SessionService
    from mediagate.core.modules.token.service import StreamingTokenService
    from mediagate.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services. Configuration is passed in explicitly at construction."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None) -> None:
        self.config = config
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    user: UserService
    session: SessionService
    token: StreamingTokenService
    access: AccessService
    media: MediaService
    manifest: ManifestService
    clearkey: ClearKeyService

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - users before sessions
        service_configs = [
            ("user", "mediagate.core.modules.user.service", "UserService"),
            ("session", "mediagate.core.modules.session.service", "SessionService"),
            ("token", "mediagate.core.modules.token.service", "StreamingTokenService"),
            ("access", "mediagate.core.modules.access.service", "AccessService"),
            ("media", "mediagate.core.modules.media.service", "MediaService"),
            ("manifest", "mediagate.core.modules.manifest.service", "ManifestService"),
            ("clearkey", "mediagate.core.modules.clearkey.service", "ClearKeyService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(config, database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, optional database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]] | None
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB when configured, and auto-register services."""
        self.config = config
        self.mongo_client = None
        self.database = None
        if config.database_url:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(config, self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        logger.debug("core_starting", storage="mongodb" if self.database is not None else "memory")
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from starlette.requests import HTTPConnection

from mediagate.config import Config
from mediagate.core.core import Core
from mediagate.core.modules.access.credentials import ClientInfo, RequestCredentials
from mediagate.core.modules.access.models import AccessDecision, AccessPolicy, AccessVia
from mediagate.core.modules.clearkey.service import ClearKeyLicense
from mediagate.core.modules.cookie.codec import build_cookie, build_expired_cookie, session_cookie_options
from mediagate.core.modules.manifest.models import ManifestFormat, ManifestRewriteContext
from mediagate.core.modules.session.models import Session
from mediagate.core.modules.token.models import StreamGrant, StreamingToken
from mediagate.core.modules.user.models import UserRole, UserView
from mediagate.errors import AuthenticationError, ConflictError

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, checks access before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def session_cookie_name(self) -> str:
        return self._config.session_cookie_name

    def read_credentials(self, request: HTTPConnection) -> RequestCredentials:
        """Collect the session cookie, streaming token and client info of a request."""
        token = self._core.services.token.extract_token(request)
        return RequestCredentials.from_request(request, self._config.session_cookie_name, token)

    async def authorize(
        self, policy: AccessPolicy, credentials: RequestCredentials, video_id: str | None = None
    ) -> AccessDecision:
        return await self._core.services.access.authorize(policy, credentials, video_id)

    # --- Sessions ---

    async def setup(self, email: str, password: str) -> UserView:
        """Create the first admin account. Only possible while no admin exists."""
        if self._core.services.user.has_admin():
            raise ConflictError("Setup has already been completed")
        user = await self._core.services.user.create_user(email, password, UserRole.ADMIN)
        return UserView.from_domain(user)

    async def login(self, email: str, password: str, client: ClientInfo) -> Session:
        """Authenticate user and create session.

        Every failure takes at least ``login_failure_delay_seconds`` from the start
        of the call, whichever way it failed.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        user = await self._core.services.user.verify_credentials(email, password)
        if user is None:
            remaining = self._config.login_failure_delay_seconds - (loop.time() - started)
            if remaining > 0:
                await asyncio.sleep(remaining)
            logger.info("login_failed", ip_address=client.ip_address)
            raise AuthenticationError("Invalid email or password")
        session = await self._core.services.session.create_session(user.subject_id, client.user_agent, client.ip_address)
        logger.info("login_succeeded", subject_id=user.subject_id)
        return session

    async def logout(self, credentials: RequestCredentials) -> None:
        """Revoke the current session, if any."""
        if credentials.session_id:
            await self._core.services.session.revoke_session(credentials.session_id)

    async def logout_all(self, credentials: RequestCredentials) -> int:
        """Revoke every session of the current user, the current one included."""
        subject_id = await self._ensure_session(credentials)
        return await self._core.services.session.revoke_all_for_subject(subject_id)

    async def get_current_user(self, credentials: RequestCredentials) -> UserView:
        subject_id = await self._ensure_session(credentials)
        return self.get_session_user(subject_id)

    def get_session_user(self, subject_id: str) -> UserView:
        user = self._core.services.user.find_user_by_subject(subject_id)
        if user is None:
            raise AuthenticationError("Not authenticated")
        return UserView.from_domain(user)

    def session_cookie(self, session: Session) -> str:
        """Set-Cookie value carrying the session id."""
        return build_cookie(self._config.session_cookie_name, session.id, session_cookie_options(self._config))

    def expired_session_cookie(self) -> str:
        return build_expired_cookie(self._config.session_cookie_name, session_cookie_options(self._config))

    # --- Streaming tokens ---

    async def issue_stream_token(self, credentials: RequestCredentials, video_id: str) -> StreamGrant:
        """Hand out a token for one video (session required).

        A still-valid token for the same video presented with the request is
        returned as is unless it is close to expiry.
        """
        subject_id = await self._ensure_session(credentials)
        self._core.services.media.ensure_video(video_id)

        token_service = self._core.services.token
        token = None
        if credentials.token:
            decision = await self.authorize(AccessPolicy.TOKEN, credentials, video_id)
            if decision.allow and decision.token is not None and decision.principal_id == subject_id:
                token = decision.token
        if token is None or token_service.should_refresh(token):
            token = self._issue_for_client(video_id, subject_id, credentials.client)

        urls = token_service.stream_urls(video_id, token.value)
        return StreamGrant(
            token=token.value,
            manifest_url=urls.manifest_url,
            playlist_url=urls.playlist_url,
            key_delivery_url=urls.key_delivery_url,
            expires_in=token_service.expires_in_seconds(token),
        )

    # --- Media delivery ---

    async def get_manifest(self, credentials: RequestCredentials, video_id: str, fmt: ManifestFormat) -> str:
        """Rewritten playlist or MPD (session or token).

        With session access a fresh token is issued so that segment and key
        requests made by the player are authorized.
        """
        decision = await self._authorize_media(AccessPolicy.SESSION_OR_TOKEN, credentials, video_id)
        if decision.via == AccessVia.TOKEN and decision.token is not None:
            token = decision.token
        else:
            token = self._issue_for_client(video_id, decision.ensure_allowed(), credentials.client)
        context = ManifestRewriteContext.for_video(video_id, token.value)
        return await self._core.services.manifest.get_rewritten_manifest(fmt, context)

    async def get_hls_segment(self, credentials: RequestCredentials, video_id: str, filename: str) -> Path:
        await self._authorize_media(AccessPolicy.TOKEN, credentials, video_id)
        return self._core.services.media.get_hls_segment_path(video_id, filename)

    async def get_dash_segment(self, credentials: RequestCredentials, video_id: str, stream: str, filename: str) -> Path:
        await self._authorize_media(AccessPolicy.TOKEN, credentials, video_id)
        return self._core.services.media.get_dash_segment_path(video_id, stream, filename)

    async def get_hls_key(self, credentials: RequestCredentials, video_id: str) -> bytes:
        decision = await self._authorize_media(AccessPolicy.TOKEN, credentials, video_id)
        return await self._core.services.clearkey.get_hls_key(video_id, decision.ensure_allowed())

    async def get_clearkey_license(self, credentials: RequestCredentials, video_id: str) -> ClearKeyLicense:
        decision = await self._authorize_media(AccessPolicy.TOKEN, credentials, video_id)
        return await self._core.services.clearkey.get_license(video_id, decision.ensure_allowed())

    # --- Helpers ---

    async def _ensure_session(self, credentials: RequestCredentials) -> str:
        decision = await self.authorize(AccessPolicy.SESSION, credentials)
        return decision.ensure_allowed()

    async def _authorize_media(
        self, policy: AccessPolicy, credentials: RequestCredentials, video_id: str
    ) -> AccessDecision:
        self._core.services.media.video_dir(video_id)  # raises ValidationError on a malformed id
        decision = await self.authorize(policy, credentials, video_id)
        decision.ensure_allowed()
        return decision

    def _issue_for_client(self, video_id: str, subject_id: str, client: ClientInfo) -> StreamingToken:
        return self._core.services.token.issue_token(
            video_id, subject_id, client_ip=client.ip_address, user_agent=client.user_agent
        )

import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from starlette.requests import HTTPConnection

from mediagate.config import Config
from mediagate.core.core import Service
from mediagate.core.modules.token.codec import TokenDecodeError, decode_token, encode_token
from mediagate.core.modules.token.models import (
    StreamingToken,
    StreamUrls,
    TokenClaims,
    TokenInvalidReason,
    TokenValidation,
)
from mediagate.errors import ValidationError

logger = structlog.get_logger(__name__)

REFRESH_THRESHOLD_MS = 5 * 60 * 1000


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class StreamingTokenService(Service):
    """Issues and validates stateless, video-scoped streaming tokens.

    Tokens are never stored. They are revoked only by expiry or by rotating
    ``stream_token_secret``, which invalidates every outstanding token.
    """

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None) -> None:
        super().__init__(config, database)
        self._secret = config.stream_token_secret
        self._default_ttl = timedelta(seconds=config.stream_token_ttl_seconds)
        self._max_ttl = timedelta(seconds=config.stream_token_max_ttl_seconds)
        self.clock: Callable[[], int] = epoch_millis

    def issue_token(
        self,
        video_id: str,
        subject_id: str,
        client_ip: str | None = None,
        user_agent: str | None = None,
        ttl: timedelta | None = None,
    ) -> StreamingToken:
        """Issue a token for one video, bound to the requesting client.

        ``ttl`` is clamped to the configured maximum.
        """
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= timedelta(0):
            raise ValidationError("Token lifetime must be positive")
        ttl = min(ttl, self._max_ttl)

        issued_at = self.clock()
        claims = TokenClaims(
            vid=video_id,
            sub=subject_id,
            iat=issued_at,
            exp=issued_at + max(1, ttl // timedelta(milliseconds=1)),
            ip=client_ip,
            ua=user_agent,
        )
        logger.info("stream_token_issued", video_id=video_id, subject_id=subject_id, ttl_ms=claims.exp - claims.iat)
        return StreamingToken(value=encode_token(claims, self._secret), claims=claims)

    def validate_token(
        self,
        token: str,
        expected_video_id: str,
        request_ip: str | None = None,
        request_user_agent: str | None = None,
    ) -> TokenValidation:
        """Check signature, expiry, resource scope and client bindings, in that order."""
        try:
            claims = decode_token(token, self._secret)
        except TokenDecodeError as e:
            logger.warning("stream_token_rejected", reason=TokenInvalidReason.BAD_SIGNATURE, detail=str(e))
            return TokenValidation.invalid(TokenInvalidReason.BAD_SIGNATURE)

        if self.clock() >= claims.exp:
            logger.info("stream_token_rejected", reason=TokenInvalidReason.EXPIRED, video_id=claims.vid)
            return TokenValidation.invalid(TokenInvalidReason.EXPIRED, claims)

        if claims.vid != expected_video_id:
            logger.warning(
                "stream_token_rejected",
                reason=TokenInvalidReason.WRONG_RESOURCE,
                video_id=claims.vid,
                expected_video_id=expected_video_id,
            )
            return TokenValidation.invalid(TokenInvalidReason.WRONG_RESOURCE, claims)

        if claims.ua is not None and claims.ua != request_user_agent:
            logger.warning("stream_token_rejected", reason=TokenInvalidReason.BINDING_MISMATCH, binding="user_agent")
            return TokenValidation.invalid(TokenInvalidReason.BINDING_MISMATCH, claims)

        if claims.ip is not None and claims.ip != request_ip:
            if self.config.stream_token_ip_binding == "strict":
                logger.warning("stream_token_rejected", reason=TokenInvalidReason.BINDING_MISMATCH, binding="ip")
                return TokenValidation.invalid(TokenInvalidReason.BINDING_MISMATCH, claims)
            logger.warning("stream_token_ip_mismatch", video_id=claims.vid, token_ip=claims.ip, request_ip=request_ip)

        return TokenValidation.ok(claims)

    def extract_token(self, request: HTTPConnection) -> str | None:
        """Read the token from ``?token=``, falling back to a Bearer Authorization header."""
        query_token = request.query_params.get("token")
        if query_token:
            return query_token

        scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return None

    def should_refresh(self, token: StreamingToken) -> bool:
        """Whether less than five minutes of validity remain."""
        return token.claims.exp - self.clock() < REFRESH_THRESHOLD_MS

    def expires_in_seconds(self, token: StreamingToken) -> int:
        return max(0, (token.claims.exp - self.clock()) // 1000)

    def stream_urls(self, video_id: str, token: str) -> StreamUrls:
        return StreamUrls(
            manifest_url=f"/videos/{video_id}/manifest.mpd?token={token}",
            playlist_url=f"/videos/{video_id}/playlist.m3u8?token={token}",
            key_delivery_url=f"/videos/{video_id}/clearkey?token={token}",
        )

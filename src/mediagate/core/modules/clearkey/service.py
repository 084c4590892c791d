import base64
import hashlib

import structlog
from pydantic import BaseModel, Field

from mediagate.core.core import Service

logger = structlog.get_logger(__name__)


class ClearKeyEntry(BaseModel):
    kty: str = "oct"
    kid: str = Field(..., description="Key ID, base64url without padding")
    k: str = Field(..., description="Content key, base64url without padding")


class ClearKeyLicense(BaseModel):
    """W3C ClearKey license response."""

    keys: list[ClearKeyEntry]
    type: str = "temporary"


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def generate_key_id(video_id: str) -> bytes:
    """Stable 16-byte key ID derived from the video ID."""
    return hashlib.sha256(video_id.encode("utf-8")).digest()[:16]


class ClearKeyService(Service):
    """Releases content keys as ClearKey licenses.

    Callers must have validated a streaming token for the same video first.
    """

    async def get_license(self, video_id: str, subject_id: str) -> ClearKeyLicense:
        key = await self.core.services.media.read_key(video_id)
        key_id = generate_key_id(video_id)
        logger.info("clearkey_license_delivered", video_id=video_id, subject_id=subject_id, kid=key_id.hex())
        return ClearKeyLicense(keys=[ClearKeyEntry(kid=b64url(key_id), k=b64url(key))])

    async def get_hls_key(self, video_id: str, subject_id: str) -> bytes:
        key = await self.core.services.media.read_key(video_id)
        logger.info("hls_key_delivered", video_id=video_id, subject_id=subject_id)
        return key

import asyncio
from pathlib import Path

import structlog

from mediagate.core.core import Service
from mediagate.core.modules.manifest.models import ManifestFormat
from mediagate.core.modules.media.storage import (
    get_dash_segment_file_path,
    get_hls_segment_file_path,
    get_key_file_path,
    get_manifest_file_path,
    get_video_dir,
    is_dash_segment_name,
    is_hls_segment_name,
)
from mediagate.errors import ManifestCorruptError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

AES_128_KEY_LENGTH = 16


class MediaService(Service):
    """Read-only access to packaged media on disk.

    Error messages name the video and file, never the storage path.
    """

    def video_dir(self, video_id: str) -> Path:
        try:
            return get_video_dir(self.config.videos_path, video_id)
        except ValueError as e:
            raise ValidationError("Invalid video ID") from e

    def has_video(self, video_id: str) -> bool:
        return self.video_dir(video_id).is_dir()

    def ensure_video(self, video_id: str) -> None:
        if not self.has_video(video_id):
            raise NotFoundError("Video not found")

    async def read_manifest(self, video_id: str, fmt: ManifestFormat) -> str:
        """Read the stored playlist or manifest of a video.

        Raises:
            ManifestCorruptError: If the stored file is not valid UTF-8
        """
        self.ensure_video(video_id)
        path = get_manifest_file_path(self.config.videos_path, video_id, fmt.filename)
        if not path.is_file():
            raise NotFoundError(f"{fmt.filename} not available for this video")
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("manifest_not_utf8", video_id=video_id, format=fmt, position=e.start)
            raise ManifestCorruptError from e

    def get_hls_segment_path(self, video_id: str, filename: str) -> Path:
        if not is_hls_segment_name(filename):
            raise ValidationError(f"Invalid segment name: {filename}")
        self.ensure_video(video_id)
        path = get_hls_segment_file_path(self.config.videos_path, video_id, filename)
        if not path.is_file():
            raise NotFoundError(f"Segment not found: {filename}")
        return path

    def get_dash_segment_path(self, video_id: str, stream: str, filename: str) -> Path:
        if not is_dash_segment_name(stream, filename):
            raise ValidationError(f"Invalid segment name: {stream}/{filename}")
        self.ensure_video(video_id)
        path = get_dash_segment_file_path(self.config.videos_path, video_id, stream, filename)
        if not path.is_file():
            raise NotFoundError(f"Segment not found: {stream}/{filename}")
        return path

    def has_key(self, video_id: str) -> bool:
        return self.has_video(video_id) and get_key_file_path(self.config.videos_path, video_id).is_file()

    async def read_key(self, video_id: str) -> bytes:
        """Read the AES-128 content key of a video.

        Raises:
            NotFoundError: If the video has no key
            ValueError: If the stored key has the wrong length
        """
        if not self.has_key(video_id):
            raise NotFoundError("Encryption key not found")
        key = await asyncio.to_thread(get_key_file_path(self.config.videos_path, video_id).read_bytes)
        if len(key) != AES_128_KEY_LENGTH:
            logger.error("invalid_key_length", video_id=video_id, length=len(key))
            raise ValueError(f"Stored key for {video_id} has invalid length {len(key)}")
        return key

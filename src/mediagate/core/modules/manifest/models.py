"""Manifest formats and the per-call rewrite context."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ManifestFormat(StrEnum):
    HLS = "hls"
    DASH = "dash"

    @property
    def content_type(self) -> str:
        if self is ManifestFormat.HLS:
            return "application/vnd.apple.mpegurl"
        return "application/dash+xml"

    @property
    def filename(self) -> str:
        if self is ManifestFormat.HLS:
            return "playlist.m3u8"
        return "manifest.mpd"


class ManifestRewriteContext(BaseModel):
    """Everything a single rewrite needs. Built per request, never stored."""

    video_id: str
    token: str | None = None
    base_segment_path: str = Field(..., description="Gated prefix segment URIs are redirected to")
    base_key_path: str = Field(..., description="Gated key-delivery endpoint")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_video(cls, video_id: str, token: str | None) -> "ManifestRewriteContext":
        """Context for manifests served from ``/videos/{video_id}/``."""
        return cls(
            video_id=video_id,
            token=token,
            base_segment_path=f"/videos/{video_id}/segment",
            base_key_path=f"/videos/{video_id}/clearkey",
        )

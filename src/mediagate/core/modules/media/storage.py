"""Filesystem layout of packaged media.

    <videos_path>/<video_id>/playlist.m3u8      HLS playlist
    <videos_path>/<video_id>/segment_000.ts     HLS segments
    <videos_path>/<video_id>/key.bin            AES-128 content key (16 bytes)
    <videos_path>/<video_id>/manifest.mpd       DASH manifest
    <videos_path>/<video_id>/video/init.mp4     DASH init segment
    <videos_path>/<video_id>/video/segment-0001.m4s
"""

import re
from pathlib import Path

from mediagate.core.modules.manifest.hls import INIT_SEGMENT_NAME_RE, SEGMENT_NAME_RE
from mediagate.utils import is_video_id

KEY_FILENAME = "key.bin"
DASH_STREAMS = ("video", "audio")
DASH_INIT_RE = re.compile(r"^init\.mp4$")
DASH_MEDIA_RE = re.compile(r"^segment-\d{4}\.m4s$")


def is_safe_filename(filename: str) -> bool:
    """Reject anything that could leave the video directory."""
    return (
        bool(filename)
        and filename == Path(filename).name
        and not filename.startswith(".")
        and "\\" not in filename
        and "\x00" not in filename
    )


def is_dash_segment_name(stream: str, filename: str) -> bool:
    """Validate a DASH segment reference such as ``video/segment-0001.m4s``."""
    if stream not in DASH_STREAMS or not is_safe_filename(filename):
        return False
    return bool(DASH_INIT_RE.fullmatch(filename) or DASH_MEDIA_RE.fullmatch(filename))


def is_hls_segment_name(filename: str) -> bool:
    return is_safe_filename(filename) and bool(
        SEGMENT_NAME_RE.fullmatch(filename) or INIT_SEGMENT_NAME_RE.fullmatch(filename)
    )


def get_video_dir(videos_path: str, video_id: str) -> Path:
    """Directory holding one video's packaged files.

    Raises:
        ValueError: If video_id is not a plain identifier
    """
    if not is_video_id(video_id):
        raise ValueError(f"Invalid video id: {video_id!r}")
    return Path(videos_path) / video_id


def get_manifest_file_path(videos_path: str, video_id: str, filename: str) -> Path:
    return get_video_dir(videos_path, video_id) / filename


def get_hls_segment_file_path(videos_path: str, video_id: str, filename: str) -> Path:
    return get_video_dir(videos_path, video_id) / filename


def get_dash_segment_file_path(videos_path: str, video_id: str, stream: str, filename: str) -> Path:
    return get_video_dir(videos_path, video_id) / stream / filename


def get_key_file_path(videos_path: str, video_id: str) -> Path:
    return get_video_dir(videos_path, video_id) / KEY_FILENAME

import re
from datetime import UTC, datetime

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def is_video_id(value: str) -> bool:
    return bool(VIDEO_ID_RE.fullmatch(value))


def now() -> datetime:
    return datetime.now(UTC)

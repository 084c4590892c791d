"""Shared pytest fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mediagate.app import App
from mediagate.config import Config
from mediagate.core.core import Core
from mediagate.web.server import create_fastapi_app

TEST_SECRET = "test-stream-secret-0123456789"
TEST_KEY = bytes(range(16))

PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:10
#EXT-X-KEY:METHOD=AES-128,URI="/videos/abc/hls-key",IV=0x00000000000000000000000000000001
#EXTINF:10.0,
segment_000.ts
#EXTINF:10.0,
segment_001.ts
#EXT-X-ENDLIST
"""

MANIFEST = """<?xml version="1.0" encoding="UTF-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" xmlns:cenc="urn:mpeg:cenc:2013" type="static">
  <Period>
    <AdaptationSet mimeType="video/mp4">
      <ContentProtection schemeIdUri="urn:mpeg:dash:mp4protection:2011" value="cenc" cenc:default_KID="00010203-0405-0607-0809-0a0b0c0d0e0f"/>
      <ContentProtection schemeIdUri="urn:uuid:e2719d58-a985-b3c9-781a-b030af78d30e" value="ClearKey1.0"/>
      <Representation id="video" bandwidth="1000000">
        <SegmentTemplate media="video/segment-$Number%04d$.m4s" initialization="video/init.mp4" startNumber="1"/>
      </Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""


@pytest.fixture
def videos_path(tmp_path: Path) -> Path:
    """Packaged media for one video, ``abc``."""
    video_dir = tmp_path / "videos" / "abc"
    (video_dir / "video").mkdir(parents=True)
    (video_dir / "playlist.m3u8").write_text(PLAYLIST, encoding="utf-8")
    (video_dir / "segment_000.ts").write_bytes(b"\x47" * 188)
    (video_dir / "segment_001.ts").write_bytes(b"\x47" * 188)
    (video_dir / "key.bin").write_bytes(TEST_KEY)
    (video_dir / "manifest.mpd").write_text(MANIFEST, encoding="utf-8")
    (video_dir / "video" / "init.mp4").write_bytes(b"init")
    (video_dir / "video" / "segment-0001.m4s").write_bytes(b"media")
    return tmp_path / "videos"


@pytest.fixture
def config(videos_path: Path) -> Config:
    """In-memory configuration with cheap password hashing."""
    return Config(
        _env_file=None,  # type: ignore[call-arg]
        stream_token_secret=TEST_SECRET,
        videos_path=str(videos_path),
        bcrypt_rounds=4,
        login_failure_delay_seconds=0.2,
    )


@pytest.fixture
def core(config: Config) -> Core:
    return Core(config)


ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "s3cret-pass"


@pytest.fixture
def client(config: Config) -> Iterator[TestClient]:
    fastapi_app = create_fastapi_app(App(config), config)
    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture
def admin(client: TestClient) -> None:
    response = client.post("/api/v1/auth/setup", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 201


@pytest.fixture
def session_id(client: TestClient, admin: None) -> str:
    """Log the client in and return the session id."""
    response = client.post("/api/v1/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.cookies["session_id"]

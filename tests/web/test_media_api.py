"""Tests for token issuance and gated media delivery."""

import base64
import re
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

TOKEN_RE = re.compile(r"token=([A-Za-z0-9_.-]+)")
NO_STORE = "no-cache, no-store, must-revalidate"


def issue_token(client: TestClient, video_id: str = "abc") -> str:
    response = client.get(f"/api/v1/videos/{video_id}/token")
    assert response.status_code == 200
    return response.json()["token"]


class TestTokenEndpoint:
    """Tests for GET /api/v1/videos/{video_id}/token."""

    def test_issue(self, client: TestClient, session_id: str):
        response = client.get("/api/v1/videos/abc/token")
        assert response.status_code == 200
        assert response.headers["cache-control"] == NO_STORE

        body = response.json()
        token = body["token"]
        assert body["success"] is True
        assert body["manifest_url"] == f"/videos/abc/manifest.mpd?token={token}"
        assert body["playlist_url"] == f"/videos/abc/playlist.m3u8?token={token}"
        assert body["key_delivery_url"] == f"/videos/abc/clearkey?token={token}"
        assert 890 <= body["expires_in"] <= 900

    def test_fresh_token_reused(self, client: TestClient, session_id: str):
        token = issue_token(client)
        again = client.get("/api/v1/videos/abc/token", params={"token": token})
        assert again.json()["token"] == token

    def test_requires_session(self, client: TestClient):
        response = client.get("/api/v1/videos/abc/token")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_token_is_not_a_session(self, client: TestClient, session_id: str):
        token = issue_token(client)
        client.cookies.clear()
        assert client.get("/api/v1/videos/abc/token", params={"token": token}).status_code == 401

    def test_unknown_video(self, client: TestClient, session_id: str):
        assert client.get("/api/v1/videos/missing/token").status_code == 404


class TestPlaylist:
    """Tests for the HLS playlist and the resources it references."""

    def test_playlist_with_session(self, client: TestClient, session_id: str):
        response = client.get("/videos/abc/playlist.m3u8")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/vnd.apple.mpegurl")
        assert response.headers["cache-control"] == NO_STORE
        assert response.headers["pragma"] == "no-cache"
        assert response.headers["expires"] == "0"
        assert response.headers["access-control-allow-origin"] == "*"

        tokens = set(TOKEN_RE.findall(response.text))
        assert len(tokens) == 1
        (token,) = tokens
        assert f"/videos/abc/segment/segment_000.ts?token={token}" in response.text
        assert f'URI="/videos/abc/hls-key?token={token}"' in response.text
        assert "#EXTINF:10.0," in response.text

    def test_playlist_with_token_keeps_token(self, client: TestClient, session_id: str):
        token = issue_token(client)
        client.cookies.clear()
        response = client.get("/videos/abc/playlist.m3u8", params={"token": token})
        assert response.status_code == 200
        assert set(TOKEN_RE.findall(response.text)) == {token}

    def test_playlist_without_credentials(self, client: TestClient):
        response = client.get("/videos/abc/playlist.m3u8")
        assert response.status_code == 401
        assert response.text == "Unauthorized"

    def test_segment(self, client: TestClient, session_id: str):
        token = issue_token(client)
        client.cookies.clear()
        response = client.get("/videos/abc/segment/segment_000.ts", params={"token": token})
        assert response.status_code == 200
        assert response.content == b"\x47" * 188
        assert response.headers["content-type"] == "video/mp2t"

    def test_segment_with_bearer_header(self, client: TestClient, session_id: str):
        token = issue_token(client)
        client.cookies.clear()
        response = client.get("/videos/abc/segment/segment_001.ts", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_segment_requires_token(self, client: TestClient, session_id: str):
        """Test that a session alone does not unlock segments."""
        response = client.get("/videos/abc/segment/segment_000.ts")
        assert response.status_code == 401
        assert response.text == "Unauthorized"
        assert response.headers["access-control-allow-origin"] == "*"

    def test_segment_token_for_other_video(self, client: TestClient, session_id: str, videos_path: Path):
        (videos_path / "other").mkdir()
        token = issue_token(client, "other")
        response = client.get("/videos/abc/segment/segment_000.ts", params={"token": token})
        assert response.status_code == 403
        assert response.text == "Forbidden"

    def test_segment_user_agent_bound(self, client: TestClient, session_id: str):
        token = issue_token(client)
        response = client.get(
            "/videos/abc/segment/segment_000.ts", params={"token": token}, headers={"User-Agent": "OtherPlayer/2.0"}
        )
        assert response.status_code == 401

    def test_segment_name_validated(self, client: TestClient, session_id: str):
        token = issue_token(client)
        response = client.get("/videos/abc/segment/key.bin", params={"token": token})
        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_hls_init_segment(self, client: TestClient, session_id: str, videos_path: Path):
        (videos_path / "abc" / "init.mp4").write_bytes(b"ftyp")
        token = issue_token(client)
        response = client.get("/videos/abc/segment/init.mp4", params={"token": token})
        assert response.status_code == 200
        assert response.content == b"ftyp"

    def test_hls_key(self, client: TestClient, session_id: str):
        token = issue_token(client)
        response = client.get("/videos/abc/hls-key", params={"token": token})
        assert response.status_code == 200
        assert response.content == bytes(range(16))
        assert response.headers["cache-control"] == NO_STORE

    def test_invalid_video_id(self, client: TestClient, session_id: str):
        response = client.get("/videos/bad.id/playlist.m3u8")
        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_corrupt_playlist(self, client: TestClient, session_id: str, videos_path: Path):
        (videos_path / "abc" / "playlist.m3u8").write_text("not a playlist", encoding="utf-8")
        response = client.get("/videos/abc/playlist.m3u8")
        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert str(videos_path) not in response.text


class TestDash:
    """Tests for the DASH manifest, segments and ClearKey license."""

    def test_manifest(self, client: TestClient, session_id: str):
        token = issue_token(client)
        response = client.get("/videos/abc/manifest.mpd", params={"token": token})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/dash+xml")
        assert f'media="video/segment-$Number%04d$.m4s?token={token}"' in response.text
        assert f"/videos/abc/clearkey?token={token}" in response.text

    @pytest.mark.parametrize(("stream", "filename", "content"), [("video", "init.mp4", b"init"), ("video", "segment-0001.m4s", b"media")])
    def test_segments(self, client: TestClient, session_id: str, stream: str, filename: str, content: bytes):
        token = issue_token(client)
        response = client.get(f"/videos/abc/{stream}/{filename}", params={"token": token})
        assert response.status_code == 200
        assert response.content == content

    def test_unknown_stream(self, client: TestClient, session_id: str):
        token = issue_token(client)
        assert client.get("/videos/abc/subtitles/init.mp4", params={"token": token}).status_code == 400

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_clearkey_license(self, client: TestClient, session_id: str, method: str):
        token = issue_token(client)
        response = client.request(method, "/videos/abc/clearkey", params={"token": token})
        assert response.status_code == 200
        assert response.headers["cache-control"] == NO_STORE

        body = response.json()
        assert body["type"] == "temporary"
        (key,) = body["keys"]
        assert key["kty"] == "oct"
        assert base64.urlsafe_b64decode(key["k"] + "==") == bytes(range(16))
        assert "=" not in key["kid"]

    def test_clearkey_requires_token(self, client: TestClient, session_id: str):
        response = client.post("/videos/abc/clearkey")
        assert response.status_code == 401

    def test_preflight(self, client: TestClient):
        response = client.options("/videos/abc/clearkey")
        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "*"

"""Tests for format dispatch and stored manifest rewriting."""

import pytest

from mediagate.core.core import Core
from mediagate.core.modules.manifest.models import ManifestFormat, ManifestRewriteContext
from mediagate.core.modules.manifest.service import parse_format, rewrite_manifest
from mediagate.core.modules.manifest.urls import with_token
from mediagate.errors import ManifestCorruptError, NotFoundError, UnsupportedFormatError


class TestParseFormat:
    @pytest.mark.parametrize(
        ("name", "fmt"),
        [
            ("hls", ManifestFormat.HLS),
            ("DASH", ManifestFormat.DASH),
            ("playlist.m3u8", ManifestFormat.HLS),
            ("stream.mpd", ManifestFormat.DASH),
        ],
    )
    def test_known(self, name: str, fmt: ManifestFormat):
        assert parse_format(name) == fmt

    @pytest.mark.parametrize("name", ["smooth", "manifest.ism", ""])
    def test_unknown(self, name: str):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            parse_format(name)
        assert exc_info.value.http_status == 415


class TestWithToken:
    """Tests for token query parameter handling."""

    def test_append(self):
        assert with_token("a.ts", "t") == "a.ts?token=t"

    def test_keep_other_params(self):
        assert with_token("a.ts?x=1&y=2", "t") == "a.ts?x=1&y=2&token=t"

    def test_replace_existing(self):
        assert with_token("a.ts?token=old&x=1&token=older", "new") == "a.ts?x=1&token=new"

    def test_remove(self):
        assert with_token("a.ts?token=old", None) == "a.ts"

    def test_absolute_url(self):
        assert with_token("https://cdn.example.com/a.ts#f", "t") == "https://cdn.example.com/a.ts?token=t#f"


class TestManifestService:
    """Tests for rewriting manifests read from the media library."""

    async def test_rewrites_stored_playlist(self, core: Core):
        context = ManifestRewriteContext.for_video("abc", "tok")
        out = await core.services.manifest.get_rewritten_manifest(ManifestFormat.HLS, context)
        assert "/videos/abc/segment/segment_000.ts?token=tok" in out
        assert 'URI="/videos/abc/hls-key?token=tok"' in out

    async def test_rewrites_stored_mpd(self, core: Core):
        context = ManifestRewriteContext.for_video("abc", "tok")
        out = await core.services.manifest.get_rewritten_manifest(ManifestFormat.DASH, context)
        assert "/videos/abc/clearkey?token=tok" in out

    async def test_missing_video(self, core: Core):
        with pytest.raises(NotFoundError):
            await core.services.manifest.get_rewritten_manifest(
                ManifestFormat.HLS, ManifestRewriteContext.for_video("missing", "tok")
            )

    async def test_corrupt_manifest_message_has_no_path(self, core: Core, videos_path):
        (videos_path / "abc" / "playlist.m3u8").write_text("garbage", encoding="utf-8")
        with pytest.raises(ManifestCorruptError) as exc_info:
            await core.services.manifest.get_rewritten_manifest(
                ManifestFormat.HLS, ManifestRewriteContext.for_video("abc", "tok")
            )
        assert str(videos_path) not in exc_info.value.message
        assert exc_info.value.http_status == 500

    async def test_manifest_with_invalid_utf8_is_corrupt(self, core: Core, videos_path):
        (videos_path / "abc" / "playlist.m3u8").write_bytes(b"#EXTM3U\n\xff\xfe\n")
        with pytest.raises(ManifestCorruptError):
            await core.services.manifest.get_rewritten_manifest(
                ManifestFormat.HLS, ManifestRewriteContext.for_video("abc", "tok")
            )

    def test_dispatch(self):
        context = ManifestRewriteContext.for_video("abc", "tok")
        assert "token=tok" in rewrite_manifest("#EXTM3U\nsegment_000.ts\n", ManifestFormat.HLS, context)
        with pytest.raises(ManifestCorruptError):
            rewrite_manifest("#EXTM3U\nsegment_000.ts\n", ManifestFormat.DASH, context)

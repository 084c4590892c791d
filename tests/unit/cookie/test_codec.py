"""Tests for the session cookie codec."""

import pytest

from mediagate.config import Config
from mediagate.core.modules.cookie.codec import (
    CookieOptions,
    build_cookie,
    build_expired_cookie,
    extract_value,
    session_cookie_options,
)


class TestBuildCookie:
    """Tests for build_cookie and build_expired_cookie."""

    def test_defaults(self):
        """Test default options: HttpOnly, Lax, root path, no Max-Age."""
        assert build_cookie("session_id", "abc", CookieOptions()) == "session_id=abc; Path=/; HttpOnly; SameSite=Lax"

    def test_attribute_order(self):
        """Test that attributes are emitted in a fixed order."""
        options = CookieOptions(max_age=3600, secure=True, same_site="strict")
        assert build_cookie("sid", "v", options) == "sid=v; Max-Age=3600; Path=/; HttpOnly; Secure; SameSite=Strict"

    def test_flags_omitted_when_disabled(self):
        options = CookieOptions(http_only=False, secure=False, same_site=None, path=None)
        assert build_cookie("sid", "v", options) == "sid=v"

    def test_zero_max_age_emitted(self):
        assert "Max-Age=0" in build_cookie("sid", "v", CookieOptions(max_age=0))

    def test_expired_cookie(self):
        """Test that the expired cookie has an empty value and Max-Age=0."""
        cookie = build_expired_cookie("session_id", CookieOptions(max_age=604800, secure=True))
        assert cookie == "session_id=; Max-Age=0; Path=/; HttpOnly; Secure; SameSite=Lax"

    def test_expired_cookie_without_options(self):
        assert build_expired_cookie("sid") == "sid=; Max-Age=0; Path=/; HttpOnly; SameSite=Lax"

    def test_session_cookie_options(self, config: Config):
        """Test that session options follow configuration."""
        options = session_cookie_options(config)
        assert options.http_only
        assert not options.secure
        assert options.max_age == config.session_ttl_seconds

        production = session_cookie_options(config.model_copy(update={"production": True}))
        assert production.secure


class TestExtractValue:
    """Tests for extract_value."""

    def test_missing_header(self):
        assert extract_value(None, "sid") is None
        assert extract_value("", "sid") is None

    def test_single_pair(self):
        assert extract_value("sid=abc", "sid") == "abc"

    def test_whitespace_tolerated(self):
        assert extract_value("  theme = dark ;  sid =  abc  ", "sid") == "abc"

    def test_first_match_wins(self):
        assert extract_value("sid=first; sid=second", "sid") == "first"

    def test_empty_value(self):
        assert extract_value("sid=; other=1", "sid") == ""

    def test_malformed_pairs_skipped(self):
        """Test that pairs without '=' are ignored instead of failing."""
        assert extract_value("garbage; ;;sid=abc", "sid") == "abc"
        assert extract_value("garbage", "sid") is None

    def test_name_must_match_exactly(self):
        assert extract_value("xsid=1; sidx=2", "sid") is None

    def test_value_may_contain_equals(self):
        assert extract_value("sid=a=b=", "sid") == "a=b="

    @pytest.mark.parametrize("value", ["abc", "Zx-_09", "token.with.dots", "a=b", ""])
    def test_round_trip(self, value: str):
        """Test that a built cookie can be read back from a Cookie header."""
        set_cookie = build_cookie("sid", value, CookieOptions(max_age=60, secure=True))
        # Browsers send back only the name=value part
        cookie_header = f"other=1; {set_cookie.split(';', 1)[0]}; last=2"
        assert extract_value(cookie_header, "sid") == value

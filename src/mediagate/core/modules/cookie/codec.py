"""Serialization of session identifiers into HTTP cookie headers."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from mediagate.config import Config


class CookieOptions(BaseModel):
    """Attributes appended to a Set-Cookie value."""

    http_only: bool = True
    secure: bool = False
    same_site: Literal["lax", "strict", "none"] | None = "lax"
    max_age: int | None = None  # seconds
    path: str | None = "/"

    model_config = ConfigDict(frozen=True)


def session_cookie_options(config: Config) -> CookieOptions:
    """Options for the session cookie: always HttpOnly, Secure in production."""
    return CookieOptions(http_only=True, secure=config.production, same_site="lax", max_age=config.session_ttl_seconds)


def build_cookie(name: str, value: str, options: CookieOptions) -> str:
    """Build a Set-Cookie header value.

    Attribute order is fixed: Max-Age, Path, HttpOnly, Secure, SameSite.
    """
    parts = [f"{name}={value}"]
    if options.max_age is not None:
        parts.append(f"Max-Age={options.max_age}")
    if options.path:
        parts.append(f"Path={options.path}")
    if options.http_only:
        parts.append("HttpOnly")
    if options.secure:
        parts.append("Secure")
    if options.same_site:
        parts.append(f"SameSite={options.same_site.capitalize()}")
    return "; ".join(parts)


def build_expired_cookie(name: str, options: CookieOptions | None = None) -> str:
    """Build a cookie that makes the client delete ``name`` immediately."""
    base = options or CookieOptions()
    return build_cookie(name, "", base.model_copy(update={"max_age": 0}))


def extract_value(header: str | None, name: str) -> str | None:
    """Return the value of the first ``name`` cookie in a Cookie header.

    Pairs without ``=`` are skipped. Empty values are returned as ``""``.
    """
    if not header:
        return None
    for pair in header.split(";"):
        key, sep, value = pair.strip().partition("=")
        if not sep:
            continue
        if key.strip() == name:
            return value.strip()
    return None

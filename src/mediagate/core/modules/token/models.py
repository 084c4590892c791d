"""Streaming token models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TokenClaims(BaseModel):
    """Signed claims of a streaming token.

    Field order is part of the wire format: the canonical form is the compact
    JSON dump of this model, so fields must never be reordered.
    Timestamps are epoch milliseconds.
    """

    vid: str = Field(..., description="Video the token is scoped to")
    sub: str = Field(..., description="Subject (principal) the token was issued to")
    iat: int = Field(..., description="Issued at, epoch milliseconds")
    exp: int = Field(..., description="Expires at, epoch milliseconds")
    ip: str | None = Field(None, description="Client IP binding")
    ua: str | None = Field(None, description="User-Agent binding")

    model_config = ConfigDict(frozen=True)


class StreamingToken(BaseModel):
    """An issued token together with its decoded claims."""

    value: str
    claims: TokenClaims

    model_config = ConfigDict(frozen=True)

    @property
    def video_id(self) -> str:
        return self.claims.vid

    @property
    def subject_id(self) -> str:
        return self.claims.sub

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.claims.iat / 1000, UTC)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.claims.exp / 1000, UTC)


class TokenInvalidReason(StrEnum):
    BAD_SIGNATURE = "bad-signature"
    EXPIRED = "expired"
    WRONG_RESOURCE = "wrong-resource"
    BINDING_MISMATCH = "binding-mismatch"


class TokenValidation(BaseModel):
    """Outcome of validating a token: claims when valid, a reason otherwise."""

    claims: TokenClaims | None = None
    reason: TokenInvalidReason | None = None

    @property
    def valid(self) -> bool:
        return self.reason is None and self.claims is not None

    @classmethod
    def ok(cls, claims: TokenClaims) -> "TokenValidation":
        return cls(claims=claims)

    @classmethod
    def invalid(cls, reason: TokenInvalidReason, claims: TokenClaims | None = None) -> "TokenValidation":
        return cls(claims=claims, reason=reason)


class StreamUrls(BaseModel):
    """Gated URLs with the token embedded."""

    manifest_url: str = Field(..., description="DASH manifest URL")
    playlist_url: str = Field(..., description="HLS playlist URL")
    key_delivery_url: str = Field(..., description="ClearKey license URL")


class StreamGrant(BaseModel):
    """A token handed to a player together with the URLs it unlocks."""

    token: str = Field(..., description="Streaming token")
    manifest_url: str = Field(..., description="DASH manifest URL")
    playlist_url: str = Field(..., description="HLS playlist URL")
    key_delivery_url: str = Field(..., description="ClearKey license URL")
    expires_in: int = Field(..., description="Seconds until the token expires")

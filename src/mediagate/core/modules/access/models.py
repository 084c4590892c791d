from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from mediagate.core.modules.token.models import StreamingToken, TokenInvalidReason
from mediagate.errors import AccessDeniedError, AuthenticationError


class AccessPolicy(StrEnum):
    """Which credential an endpoint accepts."""

    SESSION = "session"
    TOKEN = "token"
    SESSION_OR_TOKEN = "session_or_token"


class DenyReason(StrEnum):
    NO_SESSION = "no-session"
    INVALID_SESSION = "invalid-session"
    NO_TOKEN = "no-token"
    NO_CREDENTIALS = "no-credentials"
    BAD_SIGNATURE = TokenInvalidReason.BAD_SIGNATURE.value
    EXPIRED = TokenInvalidReason.EXPIRED.value
    WRONG_RESOURCE = TokenInvalidReason.WRONG_RESOURCE.value
    BINDING_MISMATCH = TokenInvalidReason.BINDING_MISMATCH.value


class AccessVia(StrEnum):
    SESSION = "session"
    TOKEN = "token"


class AccessDecision(BaseModel):
    """Outcome of an access check.

    ``token`` is set when access was granted by a streaming token, so routes can
    pass the same token on to rewritten manifests.
    """

    allow: bool
    principal_id: str | None = None
    deny_reason: DenyReason | None = None
    via: AccessVia | None = None
    token: StreamingToken | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def granted(cls, principal_id: str, via: AccessVia, token: StreamingToken | None = None) -> "AccessDecision":
        return cls(allow=True, principal_id=principal_id, via=via, token=token)

    @classmethod
    def denied(cls, reason: DenyReason) -> "AccessDecision":
        return cls(allow=False, deny_reason=reason)

    def ensure_allowed(self) -> str:
        """Return the principal ID or raise the error matching the deny reason."""
        if self.allow and self.principal_id is not None:
            return self.principal_id
        match self.deny_reason:
            case DenyReason.WRONG_RESOURCE:
                raise AccessDeniedError("Token is not valid for this resource")
            case DenyReason.EXPIRED:
                raise AuthenticationError("Streaming token expired")
            case DenyReason.NO_SESSION | DenyReason.INVALID_SESSION:
                raise AuthenticationError("Not authenticated")
            case _:
                raise AuthenticationError("Invalid or missing streaming token")

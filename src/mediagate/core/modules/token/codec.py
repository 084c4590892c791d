"""Wire encoding of streaming tokens.

Format: ``v1.<claims>.<signature>`` where both segments are unpadded base64url,
``claims`` is the compact JSON of TokenClaims and ``signature`` is
HMAC-SHA256(secret, "v1.<claims>").
"""

import base64
import binascii
import hashlib
import hmac

from pydantic import ValidationError as PydanticValidationError

from mediagate.core.modules.token.models import TokenClaims

TOKEN_VERSION = "v1"


class TokenDecodeError(Exception):
    """The token is malformed or its signature does not verify."""


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(segment: str) -> bytes:
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as e:
        raise TokenDecodeError("Invalid base64 segment") from e
    # Reject non-canonical encodings so that every character of the token is significant
    if _b64url_encode(raw) != segment:
        raise TokenDecodeError("Non-canonical base64 segment")
    return raw


def _sign(secret: str, signing_input: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def canonical_claims(claims: TokenClaims) -> bytes:
    return claims.model_dump_json().encode("utf-8")


def encode_token(claims: TokenClaims, secret: str) -> str:
    signing_input = f"{TOKEN_VERSION}.{_b64url_encode(canonical_claims(claims))}"
    return f"{signing_input}.{_b64url_encode(_sign(secret, signing_input))}"


def decode_token(token: str, secret: str) -> TokenClaims:
    """Verify the signature and return the claims.

    Raises:
        TokenDecodeError: If the token is malformed or the signature does not verify
    """
    parts = token.split(".")
    if len(parts) != 3 or parts[0] != TOKEN_VERSION:
        raise TokenDecodeError("Malformed token")

    signing_input = f"{parts[0]}.{parts[1]}"
    try:
        expected = _sign(secret, signing_input)
    except UnicodeEncodeError as e:
        raise TokenDecodeError("Malformed token") from e
    if not hmac.compare_digest(_b64url_decode(parts[2]), expected):
        raise TokenDecodeError("Signature mismatch")

    try:
        return TokenClaims.model_validate_json(_b64url_decode(parts[1]))
    except PydanticValidationError as e:
        raise TokenDecodeError("Invalid claims") from e

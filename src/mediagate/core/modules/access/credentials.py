from dataclasses import dataclass

from starlette.requests import HTTPConnection

from mediagate.core.modules.cookie.codec import extract_value

FORWARDED_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


@dataclass(frozen=True)
class ClientInfo:
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: HTTPConnection) -> "ClientInfo":
        return cls(ip_address=client_ip(request), user_agent=request.headers.get("user-agent"))


def client_ip(request: HTTPConnection) -> str | None:
    """Client address from proxy headers, falling back to the socket peer.

    Only the first entry of ``X-Forwarded-For`` is used.
    """
    for header in FORWARDED_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            first = value.split(",", 1)[0].strip()
            if first:
                return first
    return request.client.host if request.client else None


@dataclass(frozen=True)
class RequestCredentials:
    """Everything an access check may look at, extracted from one request."""

    session_id: str | None = None
    token: str | None = None
    client: ClientInfo = ClientInfo()

    @classmethod
    def from_request(cls, request: HTTPConnection, cookie_name: str, token: str | None) -> "RequestCredentials":
        return cls(
            session_id=extract_value(request.headers.get("cookie"), cookie_name) or None,
            token=token,
            client=ClientInfo.from_request(request),
        )

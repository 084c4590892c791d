from typing import Annotated, cast

from fastapi import Depends, Request

from mediagate.app import App
from mediagate.core.modules.access.credentials import ClientInfo, RequestCredentials


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_credentials(request: Request, app: Annotated[App, Depends(get_app)]) -> RequestCredentials:
    """Session cookie, streaming token (``?token=`` or Bearer) and client info of the request."""
    return app.read_credentials(request)


async def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo.from_request(request)


async def use_plain_errors(request: Request) -> None:
    """Errors raised under this dependency are rendered as plain text."""
    request.state.plain_errors = True


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
CredentialsDep = Annotated[RequestCredentials, Depends(get_credentials)]
ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]

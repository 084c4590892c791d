from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from mediagate.core.modules.user.models import UserView
from mediagate.web.deps import AppDep, ClientInfoDep, CredentialsDep
from mediagate.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class SetupRequest(BaseModel):
    """First admin account."""

    email: str = Field(..., description="Admin email address")
    password: str = Field(..., min_length=4, description="Admin password")


class LoginResponse(BaseModel):
    """Authentication response. The session itself travels in the cookie."""

    success: bool = True
    user: UserView


class LogoutAllResponse(BaseModel):
    success: bool = True
    revoked: int = Field(..., description="Number of sessions revoked")


@router.post(
    "/auth/setup",
    summary="Create the first admin",
    description="Create the initial admin account. Only available while no admin exists.",
    operation_id="setup",
    status_code=201,
    responses={
        201: {"description": "Admin created"},
        400: {"model": ErrorResponse, "description": "Invalid email or password"},
        409: {"model": ErrorResponse, "description": "Setup already completed"},
    },
)
async def setup(setup_data: SetupRequest, app: AppDep) -> UserView:
    return await app.setup(setup_data.email, setup_data.password)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password. The session cookie is set on success.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, client: ClientInfoDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""
    session = await app.login(login_data.email, login_data.password, client)
    response.headers.append("Set-Cookie", app.session_cookie(session))
    user = app.get_session_user(session.subject_id)
    return LoginResponse(user=user)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Revoke the current session and clear the session cookie. Succeeds without a session too.",
    operation_id="logout",
    status_code=204,
    responses={204: {"description": "Successfully logged out"}},
)
async def logout(app: AppDep, credentials: CredentialsDep, response: Response) -> None:
    await app.logout(credentials)
    response.headers.append("Set-Cookie", app.expired_session_cookie())


@router.post(
    "/auth/logout-all",
    summary="End all sessions",
    description="Revoke every session of the current user on all devices.",
    operation_id="logoutAll",
    responses={
        200: {"description": "Sessions revoked"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout_all(app: AppDep, credentials: CredentialsDep, response: Response) -> LogoutAllResponse:
    revoked = await app.logout_all(credentials)
    response.headers.append("Set-Cookie", app.expired_session_cookie())
    return LogoutAllResponse(revoked=revoked)


@router.get(
    "/auth/me",
    summary="Get current user",
    description="Get the account of the currently authenticated user.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def me(app: AppDep, credentials: CredentialsDep) -> UserView:
    return await app.get_current_user(credentials)

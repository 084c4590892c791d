from fastapi import APIRouter, Response

from mediagate.core.modules.token.models import StreamGrant
from mediagate.web.deps import AppDep, CredentialsDep
from mediagate.web.headers import NO_STORE_HEADERS
from mediagate.web.openapi import ErrorResponse

router = APIRouter(tags=["streaming"])


class StreamTokenResponse(StreamGrant):
    """Streaming token with the gated URLs of the video."""

    success: bool = True


@router.get(
    "/videos/{video_id}/token",
    summary="Issue streaming token",
    description=(
        "Issue a short-lived token scoped to one video and bound to the calling client. "
        "A still-valid token passed as `?token=` is returned again unless it expires within five minutes."
    ),
    operation_id="issueStreamToken",
    responses={
        200: {"description": "Token issued"},
        400: {"model": ErrorResponse, "description": "Invalid video ID"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Video not found"},
    },
)
async def issue_stream_token(video_id: str, app: AppDep, credentials: CredentialsDep, response: Response) -> StreamTokenResponse:
    grant = await app.issue_stream_token(credentials, video_id)
    response.headers.update(NO_STORE_HEADERS)
    return StreamTokenResponse(**grant.model_dump())

"""Gated media delivery. These URLs are referenced from rewritten manifests.

Errors are returned as plain status text, which is what media players expect.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, JSONResponse, Response

from mediagate.core.modules.manifest.models import ManifestFormat
from mediagate.web.deps import AppDep, CredentialsDep, use_plain_errors
from mediagate.web.headers import MEDIA_CORS_HEADERS, no_store_headers, segment_headers

router = APIRouter(tags=["media"], dependencies=[Depends(use_plain_errors)])

MEDIA_RESPONSES: dict[int | str, dict[str, str]] = {
    400: {"description": "Invalid video ID or file name"},
    401: {"description": "Missing, invalid or expired credential"},
    403: {"description": "Token issued for another video"},
    404: {"description": "Video or file not found"},
}


@router.get(
    "/videos/{video_id}/playlist.m3u8",
    summary="HLS playlist",
    description="Playlist with segment and key URIs pointing at the gated endpoints, token attached.",
    operation_id="getPlaylist",
    response_class=Response,
    responses={200: {"content": {ManifestFormat.HLS.content_type: {}}}, **MEDIA_RESPONSES},
)
async def get_playlist(video_id: str, app: AppDep, credentials: CredentialsDep) -> Response:
    content = await app.get_manifest(credentials, video_id, ManifestFormat.HLS)
    return Response(content, media_type=ManifestFormat.HLS.content_type, headers=no_store_headers())


@router.get(
    "/videos/{video_id}/manifest.mpd",
    summary="DASH manifest",
    description="MPD with segment URLs and the ClearKey license URL carrying the token.",
    operation_id="getDashManifest",
    response_class=Response,
    responses={200: {"content": {ManifestFormat.DASH.content_type: {}}}, **MEDIA_RESPONSES},
)
async def get_dash_manifest(video_id: str, app: AppDep, credentials: CredentialsDep) -> Response:
    content = await app.get_manifest(credentials, video_id, ManifestFormat.DASH)
    return Response(content, media_type=ManifestFormat.DASH.content_type, headers=no_store_headers())


@router.get(
    "/videos/{video_id}/segment/{filename}",
    summary="HLS segment",
    operation_id="getHlsSegment",
    response_class=FileResponse,
    responses=MEDIA_RESPONSES,
)
async def get_hls_segment(video_id: str, filename: str, app: AppDep, credentials: CredentialsDep) -> FileResponse:
    path = await app.get_hls_segment(credentials, video_id, filename)
    return FileResponse(path, media_type=segment_media_type(filename), headers=segment_headers())


@router.get(
    "/videos/{video_id}/hls-key",
    summary="HLS AES-128 key",
    description="Raw 16-byte content key for `#EXT-X-KEY` decryption.",
    operation_id="getHlsKey",
    response_class=Response,
    responses={200: {"content": {"application/octet-stream": {}}}, **MEDIA_RESPONSES},
)
async def get_hls_key(video_id: str, app: AppDep, credentials: CredentialsDep) -> Response:
    key = await app.get_hls_key(credentials, video_id)
    return Response(key, media_type="application/octet-stream", headers=no_store_headers())


@router.api_route(
    "/videos/{video_id}/clearkey",
    methods=["GET", "POST"],
    summary="ClearKey license",
    description="W3C ClearKey JSON license for DASH playback.",
    operation_id="getClearKeyLicense",
    responses=MEDIA_RESPONSES,
)
async def get_clearkey_license(video_id: str, app: AppDep, credentials: CredentialsDep) -> JSONResponse:
    license_ = await app.get_clearkey_license(credentials, video_id)
    return JSONResponse(license_.model_dump(), headers=no_store_headers())


@router.options("/videos/{video_id}/{path:path}", include_in_schema=False)
async def media_preflight(video_id: str, path: str) -> Response:
    return Response(status_code=204, headers=MEDIA_CORS_HEADERS)


@router.get(
    "/videos/{video_id}/{stream}/{filename}",
    summary="DASH segment",
    description="Init (`init.mp4`) or media (`segment-NNNN.m4s`) segment of the `video` or `audio` stream.",
    operation_id="getDashSegment",
    response_class=FileResponse,
    responses=MEDIA_RESPONSES,
)
async def get_dash_segment(
    video_id: str, stream: str, filename: str, app: AppDep, credentials: CredentialsDep
) -> FileResponse:
    path = await app.get_dash_segment(credentials, video_id, stream, filename)
    return FileResponse(path, media_type=segment_media_type(filename), headers=segment_headers())


def segment_media_type(filename: str) -> str:
    match filename.rsplit(".", 1)[-1]:
        case "ts":
            return "video/mp2t"
        case "aac":
            return "audio/aac"
        case _:
            return "video/mp4"

import asyncio

import structlog

from mediagate.core.core import Service
from mediagate.core.modules.manifest.dash import rewrite_dash
from mediagate.core.modules.manifest.hls import rewrite_hls
from mediagate.core.modules.manifest.models import ManifestFormat, ManifestRewriteContext
from mediagate.errors import ManifestCorruptError, UnsupportedFormatError

logger = structlog.get_logger(__name__)


def parse_format(name: str) -> ManifestFormat:
    """Resolve a format name or manifest filename to a ManifestFormat."""
    lowered = name.lower()
    for fmt in ManifestFormat:
        if lowered in (fmt.value, fmt.filename):
            return fmt
    if lowered.endswith(".m3u8"):
        return ManifestFormat.HLS
    if lowered.endswith(".mpd"):
        return ManifestFormat.DASH
    raise UnsupportedFormatError(f"Unsupported manifest format: {name}")


def rewrite_manifest(content: str, fmt: ManifestFormat, context: ManifestRewriteContext) -> str:
    """Produce the client-ready manifest. Either the whole document or an exception."""
    match fmt:
        case ManifestFormat.HLS:
            return rewrite_hls(content, context)
        case ManifestFormat.DASH:
            return rewrite_dash(content, context)
    raise UnsupportedFormatError(f"Unsupported manifest format: {fmt}")


class ManifestService(Service):
    """Loads stored manifests and rewrites them for one client."""

    async def get_rewritten_manifest(self, fmt: ManifestFormat, context: ManifestRewriteContext) -> str:
        content = await self.core.services.media.read_manifest(context.video_id, fmt)
        try:
            rewritten = await asyncio.to_thread(rewrite_manifest, content, fmt, context)
        except ManifestCorruptError:
            logger.exception("manifest_corrupt", video_id=context.video_id, format=fmt)
            raise
        logger.debug("manifest_rewritten", video_id=context.video_id, format=fmt, tokenized=context.token is not None)
        return rewritten

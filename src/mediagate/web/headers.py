"""Response headers for gated media."""

# Manifests, keys and licenses carry tokens or key material and must never be cached
NO_STORE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Players may be served from another origin; credentials travel in the URL, not in cookies
MEDIA_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "false",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, Range",
}

# Segments are immutable once packaged
SEGMENT_CACHE_HEADERS = {"Cache-Control": "private, max-age=31536000"}


def no_store_headers() -> dict[str, str]:
    return {**NO_STORE_HEADERS, **MEDIA_CORS_HEADERS}


def segment_headers() -> dict[str, str]:
    return {**SEGMENT_CACHE_HEADERS, **MEDIA_CORS_HEADERS}

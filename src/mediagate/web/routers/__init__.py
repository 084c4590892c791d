from mediagate.web.routers.auth import router as auth_router
from mediagate.web.routers.media import router as media_router
from mediagate.web.routers.streaming import router as streaming_router

__all__ = [
    "auth_router",
    "media_router",
    "streaming_router",
]

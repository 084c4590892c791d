from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from mediagate.config import Config


def set_custom_openapi(app: FastAPI, config: Config) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="MediaGate API",
            version="0.1.0",
            summary="Session and streaming-token access control for stored media",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": config.session_cookie_name,
                "description": "Session identifier set by login",
            },
            "StreamToken": {
                "type": "apiKey",
                "in": "query",
                "name": "token",
                "description": "Video-scoped streaming token",
            },
            "StreamTokenBearer": {
                "type": "http",
                "scheme": "bearer",
                "description": "Streaming token in the Authorization header",
            },
        }

        session_only = [{"SessionCookie": []}]
        token_only = [{"StreamToken": []}, {"StreamTokenBearer": []}]

        public_endpoints = {
            ("GET", "/health"),
            ("POST", "/api/v1/auth/setup"),
            ("POST", "/api/v1/auth/login"),
            ("POST", "/api/v1/auth/logout"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []
                elif path.startswith("/api/"):
                    operation["security"] = session_only
                elif path.endswith((".m3u8", ".mpd")):
                    operation["security"] = session_only + token_only
                else:
                    operation["security"] = token_only

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error kind")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"success": False, "error": "Invalid email or password", "type": "unauthenticated"},
                {"success": False, "error": "Video not found", "type": "not_found"},
                {"success": False, "error": "Token is not valid for this resource", "type": "forbidden"},
            ]
        }
    }

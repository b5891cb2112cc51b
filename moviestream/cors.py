"""
CORS для плеера.

Заголовки выставляются на каждом ответе стрима (в том числе 404 и 416),
а preflight-запросы получают 200 без тела и не доходят до хранилища.
"""

from typing import Dict, Optional

from fastapi import FastAPI
from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

from moviestream.config import Settings


def cors_headers(settings: Settings, origin: Optional[str] = None) -> Dict[str, str]:
    """Набор CORS-заголовков для ответа на запрос с данным Origin."""
    allowed = settings.CORS_ORIGINS

    headers = {
        "Access-Control-Allow-Methods": ", ".join(settings.CORS_ALLOW_METHODS),
        "Access-Control-Allow-Headers": ", ".join(settings.CORS_ALLOW_HEADERS),
        "Access-Control-Expose-Headers": ", ".join(settings.CORS_EXPOSE_HEADERS),
    }

    if "*" in allowed:
        headers["Access-Control-Allow-Origin"] = "*"
    else:
        # Конкретный origin: отдаем запрошенный, если он разрешен
        headers["Access-Control-Allow-Origin"] = origin if origin in allowed else (allowed[0] if allowed else "null")
        headers["Vary"] = "Origin"

    return headers


class PreflightCORSMiddleware(CORSMiddleware):
    """
    CORSMiddleware, отвечающий на preflight 200 с пустым телом.

    Для неразрешенного origin ответ остается 200, но без
    Access-Control-Allow-Origin, и браузер сам блокирует запрос.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def install_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
        expose_headers=settings.CORS_EXPOSE_HEADERS + ["x-request-id"],
        max_age=600,
    )

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from moviestream.cors import cors_headers
from moviestream.exceptions import ServiceException

from .service import MediaStreamer

router = APIRouter(prefix="/movies", tags=["streaming"])


def get_media_streamer(request: Request) -> MediaStreamer:
    return request.app.state.media_streamer


@router.api_route("/{movie_id}/stream", methods=["GET", "HEAD"])
async def stream_movie(
    movie_id: str,
    request: Request,
    range_header: Optional[str] = Header(None, alias="Range"),
    origin: Optional[str] = Header(None),
    streamer: MediaStreamer = Depends(get_media_streamer),
):
    """Публичный стрим видео фильма с поддержкой Range"""
    try:
        return await streamer.handle_stream_request(movie_id, range_header, request.method, origin)
    except ServiceException as exc:
        # 404 тоже должен читаться плеером с другого origin
        exc.headers.update(cors_headers(streamer.settings, origin))
        raise


@router.options("/{movie_id}/stream")
async def stream_movie_options(
    request: Request,
    origin: Optional[str] = Header(None),
):
    """CORS preflight: без тела и без обращения к хранилищу"""
    return Response(status_code=200, headers=cors_headers(request.app.state.settings, origin))

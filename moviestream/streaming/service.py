"""
Отдача видео с поддержкой HTTP Range.
"""

from typing import Any, Dict, Optional

import structlog
from starlette.responses import Response, StreamingResponse

from moviestream.analytics import StreamAnalytics
from moviestream.catalog.resolver import MediaAssetResolver
from moviestream.config import Settings
from moviestream.cors import cors_headers
from moviestream.monitoring.metrics import STREAM_REQUESTS

from .ranges import FullContent, PartialContent, Unsatisfiable, plan_response
from .reader import iter_file_window

logger = structlog.get_logger(__name__)


class MediaStreamer:
    """
    Обработчик запросов на стрим фильма.

    Все зависимости передаются явно, поэтому в тестах резолвер
    и учет просмотров легко заменить фейками.

    Attributes:
        resolver: Поиск MediaAsset по ID фильма
        analytics: Учет начала просмотра
        settings: Настройки приложения
    """

    def __init__(self, resolver: MediaAssetResolver, analytics: StreamAnalytics, settings: Settings):
        self.resolver = resolver
        self.analytics = analytics
        self.settings = settings

    def _base_headers(self, origin: Optional[str]) -> Dict[str, str]:
        return cors_headers(self.settings, origin)

    async def handle_stream_request(
        self,
        movie_id: Any,
        raw_range_header: Optional[str],
        method: str = "GET",
        origin: Optional[str] = None,
    ) -> Response:
        """
        Ответ на GET/HEAD /movies/{id}/stream.

        Без Range отдается весь файл (200), с корректным Range - окно (206),
        с Range за пределами файла - 416 без тела. Нераспознанный Range
        игнорируется, как будто заголовка нет.
        NotFoundError резолвера пробрасывается наверх.
        """
        asset = await self.resolver.resolve_media_asset(movie_id)
        outcome = plan_response(raw_range_header, asset.size_bytes)
        headers = self._base_headers(origin)

        if isinstance(outcome, Unsatisfiable):
            STREAM_REQUESTS.labels(status="416").inc()
            logger.info(
                "Range not satisfiable",
                movie_id=movie_id, range=raw_range_header, size=asset.size_bytes,
            )
            headers["Content-Range"] = outcome.content_range
            return Response(status_code=416, headers=headers)

        if isinstance(outcome, PartialContent):
            status_code = 206
            start = outcome.window.start
            length = outcome.window.length
            headers["Content-Range"] = outcome.window.content_range
        elif isinstance(outcome, FullContent):
            status_code = 200
            start = 0
            length = outcome.total_size
        else:
            raise TypeError(f"unexpected range outcome: {outcome!r}")

        headers.update({
            "Content-Length": str(length),
            "Accept-Ranges": "bytes",
            "Cache-Control": f"public, max-age={self.settings.STREAM_CACHE_MAX_AGE}",
            "Content-Disposition": "inline",
            "X-Content-Type-Options": "nosniff",
        })
        STREAM_REQUESTS.labels(status=str(status_code)).inc()

        if method.upper() == "HEAD":
            return Response(status_code=status_code, headers=headers, media_type=asset.content_type)

        # Один просмотр на воспроизведение: перемотки начинаются не с нуля
        if start == 0:
            self.analytics.record_stream_start(asset.id)

        logger.info(
            "Streaming video",
            movie_id=movie_id, status=status_code, start=start,
            end=start + length - 1, size=asset.size_bytes,
        )
        return StreamingResponse(
            iter_file_window(asset.file_path, start, length, self.settings.STREAM_CHUNK_SIZE, movie_id=asset.id),
            status_code=status_code,
            headers=headers,
            media_type=asset.content_type,
        )

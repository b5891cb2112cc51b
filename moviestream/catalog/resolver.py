"""
Поиск видеофайла фильма по его ID.
"""

import mimetypes
import os
import stat
from pathlib import Path
from typing import Any, Protocol

from anyio import to_thread
import structlog
from sqlalchemy.ext.asyncio import async_sessionmaker

from moviestream.exceptions import NotFoundError, StorageInconsistencyError
from moviestream.streaming.models import MediaAsset

from . import crud

logger = structlog.get_logger(__name__)

DEFAULT_CONTENT_TYPE = "video/mp4"

SQL_ID_MIN = -2 ** 63
SQL_ID_MAX = 2 ** 63 - 1

VIDEO_CONTENT_TYPES = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".ogg": "video/ogg",
    ".ogv": "video/ogg",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".mkv": "video/x-matroska",
    ".wmv": "video/x-ms-wmv",
    ".flv": "video/x-flv",
    ".3gp": "video/3gpp",
}


def guess_content_type(path: str) -> str:
    """MIME-тип видео по расширению файла"""
    extension = Path(path).suffix.lower()
    if extension in VIDEO_CONTENT_TYPES:
        return VIDEO_CONTENT_TYPES[extension]

    content_type, _ = mimetypes.guess_type(path)
    return content_type or DEFAULT_CONTENT_TYPE


class MediaAssetResolver(Protocol):
    async def resolve_media_asset(self, movie_id: Any) -> MediaAsset:
        """Возвращает MediaAsset или бросает NotFoundError."""
        ...


class DatabaseAssetResolver:
    """
    Резолвер поверх каталога в БД.

    Attributes:
        sessionmaker: Фабрика асинхронных сессий
        media_root: Каталог, относительно которого хранятся пути к видео
    """

    def __init__(self, sessionmaker: async_sessionmaker, media_root: str):
        self.sessionmaker = sessionmaker
        self.media_root = Path(media_root)

    def _file_path(self, video_path: str) -> Path:
        path = Path(video_path)
        if path.is_absolute():
            return path
        return self.media_root / path

    async def resolve_media_asset(self, movie_id: Any) -> MediaAsset:
        try:
            numeric_id = int(movie_id)
        except (TypeError, ValueError):
            raise NotFoundError("Movie", movie_id)

        # Столбец id - знаковое 64-битное целое
        if not SQL_ID_MIN <= numeric_id <= SQL_ID_MAX:
            raise NotFoundError("Movie", movie_id)

        async with self.sessionmaker() as session:
            movie = await crud.get_movie(session, numeric_id)

        if movie is None or not movie.video_path:
            raise NotFoundError("Movie", movie_id)

        file_path = self._file_path(movie.video_path)
        try:
            file_stat = await to_thread.run_sync(os.stat, file_path)
        except OSError as e:
            logger.error(
                "Catalog record has no usable video file",
                movie_id=movie_id, path=str(file_path), errno=e.errno, error=str(e),
            )
            raise StorageInconsistencyError(movie_id, str(file_path)) from e

        if not stat.S_ISREG(file_stat.st_mode):
            logger.error(
                "Catalog record points to a non-regular file",
                movie_id=movie_id, path=str(file_path),
            )
            raise StorageInconsistencyError(movie_id, str(file_path))

        return MediaAsset(
            id=str(movie.id),
            file_path=str(file_path),
            size_bytes=file_stat.st_size,
            content_type=movie.content_type or guess_content_type(str(file_path)),
        )

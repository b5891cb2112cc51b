"""
Чтение окна файла кусками ограниченного размера.

Генератор отдает данные по одному куску и ждет, пока сервер отправит
его клиенту, поэтому медленный клиент не приводит к накоплению данных
в памяти. Файл закрывается при исчерпании окна, при ошибке чтения
и при отключении клиента.
"""

from typing import AsyncIterator, Any

import anyio
import structlog

from moviestream.exceptions import TransientIOError
from moviestream.monitoring.metrics import (
    ACTIVE_STREAMS,
    STREAM_BYTES_SERVED,
    STREAM_CLIENT_DISCONNECTS,
    STREAM_ERRORS,
)

logger = structlog.get_logger(__name__)


async def iter_file_window(
    path: str,
    start: int,
    length: int,
    chunk_size: int,
    movie_id: Any = None,
) -> AsyncIterator[bytes]:
    """Отдает length байт файла начиная со start кусками не больше chunk_size."""
    if length <= 0:
        return

    end = start + length - 1
    remaining = length
    ACTIVE_STREAMS.inc()
    try:
        file = await anyio.open_file(path, "rb")
    except OSError as e:
        ACTIVE_STREAMS.dec()
        STREAM_ERRORS.labels(error_type="io_error").inc()
        logger.error("Failed to open video file", movie_id=movie_id, path=path, start=start, end=end, error=str(e))
        raise TransientIOError(movie_id, start, end) from e

    try:
        await file.seek(start)
        while remaining > 0:
            chunk = await file.read(min(chunk_size, remaining))
            if not chunk:
                # Файл стал короче, чем был при stat
                raise EOFError(f"unexpected end of file at byte {end - remaining + 1}")
            remaining -= len(chunk)
            STREAM_BYTES_SERVED.inc(len(chunk))
            yield chunk
    except (OSError, EOFError) as e:
        STREAM_ERRORS.labels(error_type="io_error").inc()
        logger.error(
            "Video read failed mid-stream",
            movie_id=movie_id, start=start, end=end,
            sent=length - remaining, error=str(e),
        )
        raise TransientIOError(movie_id, start, end) from e
    except (GeneratorExit, anyio.get_cancelled_exc_class()):
        # Клиент отключился, это не ошибка
        STREAM_CLIENT_DISCONNECTS.inc()
        logger.debug("Client disconnected", movie_id=movie_id, start=start, end=end, sent=length - remaining)
        raise
    finally:
        # Закрываем синхронно: await в отмененной задаче может не выполниться
        file.wrapped.close()
        ACTIVE_STREAMS.dec()

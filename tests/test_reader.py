import asyncio
import gc
import os
from pathlib import Path

import pytest
from fastapi import FastAPI

from moviestream.exceptions import TransientIOError, setup_exception_handlers
from moviestream.monitoring.metrics import ACTIVE_STREAMS
from moviestream.streaming.models import MediaAsset
from moviestream.streaming.reader import iter_file_window
from moviestream.streaming.router import router as streaming_router
from moviestream.streaming.service import MediaStreamer
from tests.conftest import FakeResolver, RecordingAnalytics

FD_DIR = Path("/proc/self/fd")

requires_procfs = pytest.mark.skipif(not FD_DIR.is_dir(), reason="/proc/self/fd is not available")


def open_fds() -> int:
    return len(os.listdir(FD_DIR))


def active_streams() -> float:
    return ACTIVE_STREAMS._value.get()


async def collect(iterator):
    return [chunk async for chunk in iterator]


@pytest.mark.asyncio
async def test_reads_exact_window_in_bounded_chunks(media_file, media_bytes):
    chunks = await collect(iter_file_window(str(media_file), 100, 300, chunk_size=64))

    assert b"".join(chunks) == media_bytes[100:400]
    assert all(len(chunk) <= 64 for chunk in chunks)
    assert len(chunks) == 5


@pytest.mark.asyncio
async def test_empty_window_yields_nothing(media_file):
    assert await collect(iter_file_window(str(media_file), 0, 0, chunk_size=64)) == []


@pytest.mark.asyncio
async def test_truncated_file_raises_transient_error(media_file):
    before = active_streams()

    with pytest.raises(TransientIOError) as exc_info:
        await collect(iter_file_window(str(media_file), 900, 200, chunk_size=64, movie_id="1"))

    assert exc_info.value.start == 900
    assert exc_info.value.end == 1099
    assert active_streams() == before


@pytest.mark.asyncio
async def test_missing_file_raises_transient_error(tmp_path):
    before = active_streams()

    with pytest.raises(TransientIOError):
        await collect(iter_file_window(str(tmp_path / "gone.mp4"), 0, 10, chunk_size=64))

    assert active_streams() == before


@requires_procfs
@pytest.mark.asyncio
async def test_aborted_reads_release_file_handles(media_file):
    # Прогрев: пул потоков anyio тоже открывает дескрипторы
    await collect(iter_file_window(str(media_file), 0, 10, chunk_size=64))
    baseline = open_fds()
    before = active_streams()

    for _ in range(50):
        iterator = iter_file_window(str(media_file), 0, 1000, chunk_size=64)
        await iterator.__anext__()
        await iterator.aclose()

    assert open_fds() == baseline
    assert active_streams() == before


@pytest.fixture
def large_media(tmp_path) -> Path:
    path = tmp_path / "large.mp4"
    path.write_bytes(os.urandom(1024 * 1024))
    return path


@pytest.fixture
def streaming_app(settings, large_media) -> FastAPI:
    """Только роутер стрима, без middleware, чтобы отключение доходило до ответа."""
    asset = MediaAsset(id="7", file_path=str(large_media), size_bytes=1024 * 1024)
    app = FastAPI()
    app.state.settings = settings
    app.state.media_streamer = MediaStreamer(FakeResolver({"7": asset}), RecordingAnalytics(), settings)
    setup_exception_handlers(app)
    app.include_router(streaming_router)
    return app


async def disconnect_after_first_chunk(app: FastAPI) -> int:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/movies/7/stream",
        "raw_path": b"/movies/7/stream",
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", b"test")],
        "server": ("test", 80),
        "client": ("127.0.0.1", 5000),
    }
    first_chunk_sent = asyncio.Event()
    request_sent = False
    received = 0

    async def receive():
        nonlocal request_sent
        if not request_sent:
            request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await first_chunk_sent.wait()
        return {"type": "http.disconnect"}

    async def send(message):
        nonlocal received
        if message["type"] == "http.response.body":
            received += len(message.get("body", b""))
            first_chunk_sent.set()

    await app(scope, receive, send)
    return received


@requires_procfs
@pytest.mark.asyncio
async def test_client_disconnect_releases_file_handle(streaming_app):
    await disconnect_after_first_chunk(streaming_app)
    gc.collect()
    await asyncio.sleep(0.05)
    baseline = open_fds()

    for _ in range(10):
        received = await disconnect_after_first_chunk(streaming_app)
        assert received < 1024 * 1024

    gc.collect()
    await asyncio.sleep(0.05)
    assert open_fds() == baseline

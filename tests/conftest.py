from pathlib import Path
from typing import Dict, Iterable

import pytest
from fastapi.testclient import TestClient

from moviestream.analytics import StreamAnalytics
from moviestream.config import Settings
from moviestream.exceptions import NotFoundError, StorageInconsistencyError
from moviestream.main import create_app
from moviestream.streaming.models import MediaAsset

MEDIA_SIZE = 1000


class FakeResolver:
    """Резолвер без БД: ID -> MediaAsset из словаря."""

    def __init__(self, assets: Dict[str, MediaAsset], missing: Iterable[str] = ()):
        self.assets = assets
        self.missing = set(missing)
        self.calls = []

    async def resolve_media_asset(self, movie_id):
        self.calls.append(movie_id)
        if movie_id in self.missing:
            raise StorageInconsistencyError(movie_id, "/nowhere/video.mp4")
        asset = self.assets.get(str(movie_id))
        if asset is None:
            raise NotFoundError("Movie", movie_id)
        return asset


class RecordingAnalytics(StreamAnalytics):
    backend = "test"

    def __init__(self):
        super().__init__()
        self.recorded = []

    async def _record(self, movie_id):
        self.recorded.append(movie_id)


@pytest.fixture
def media_bytes() -> bytes:
    return bytes(i % 251 for i in range(MEDIA_SIZE))


@pytest.fixture
def media_file(tmp_path: Path, media_bytes: bytes) -> Path:
    path = tmp_path / "movie.mp4"
    path.write_bytes(media_bytes)
    return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        MEDIA_ROOT=str(tmp_path / "uploads"),
        STREAM_CHUNK_SIZE=64,
        ANALYTICS_BACKEND="none",
        LOG_JSON=False,
    )


@pytest.fixture
def resolver(media_file: Path) -> FakeResolver:
    assets = {
        "1": MediaAsset(id="1", file_path=str(media_file), size_bytes=MEDIA_SIZE, content_type="video/mp4"),
    }
    return FakeResolver(assets, missing={"2"})


@pytest.fixture
def analytics() -> RecordingAnalytics:
    return RecordingAnalytics()


@pytest.fixture
def app(settings, resolver, analytics):
    return create_app(settings, resolver=resolver, analytics=analytics)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client

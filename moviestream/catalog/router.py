"""
Endpoints каталога: список, карточка фильма и загрузка видео.
"""

import uuid
from pathlib import Path

import anyio
import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from moviestream.database import get_db_session
from moviestream.exceptions import NotFoundError, ValidationError

from . import crud, models, schemas
from .resolver import guess_content_type

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/movies", tags=["catalog"])

ALLOWED_VIDEO_EXTENSIONS = {
    ".mp4", ".avi", ".mov", ".wmv", ".mkv", ".webm", ".flv", ".m4v", ".3gp", ".ogv",
}


def _to_response(movie: models.Movie) -> schemas.MovieResponse:
    return schemas.MovieResponse(
        id=movie.id,
        title=movie.title,
        description=movie.description or "",
        content_type=movie.content_type,
        file_size_bytes=movie.file_size_bytes,
        duration=movie.duration,
        views=movie.views or 0,
        stream_url=f"/movies/{movie.id}/stream",
        created_at=movie.created_at,
    )


@router.get("", response_model=schemas.MovieList)
async def get_movies(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
):
    """Список фильмов с пагинацией, новые сначала"""
    movies = await crud.list_movies(db, skip=(page - 1) * size, limit=size)
    total = await crud.count_movies(db)

    return schemas.MovieList(
        items=[_to_response(movie) for movie in movies],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{movie_id}", response_model=schemas.MovieResponse)
async def get_movie(movie_id: int, db: AsyncSession = Depends(get_db_session)):
    """Карточка фильма. Просмотры здесь не считаются."""
    movie = await crud.get_movie(db, movie_id)
    if movie is None:
        raise NotFoundError("Movie", movie_id)
    return _to_response(movie)


@router.post("/upload", response_model=schemas.MovieResponse, status_code=status.HTTP_201_CREATED)
async def upload_movie(
    request: Request,
    video: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=255),
    description: str = Form(""),
    db: AsyncSession = Depends(get_db_session),
):
    """
    Загрузка видеофайла и создание записи в каталоге.

    Файл пишется кусками по STREAM_CHUNK_SIZE в MEDIA_ROOT под случайным
    именем и после загрузки не изменяется.
    """
    settings = request.app.state.settings

    extension = Path(video.filename or "").suffix.lower()
    if extension not in ALLOWED_VIDEO_EXTENSIONS:
        raise ValidationError(
            f"Invalid video file type: {extension or 'none'}",
            errors=[{"field": "video", "allowed": sorted(ALLOWED_VIDEO_EXTENSIONS)}],
        )

    media_root = Path(settings.MEDIA_ROOT)
    await anyio.Path(media_root).mkdir(parents=True, exist_ok=True)

    filename = f"video-{uuid.uuid4().hex}{extension}"
    destination = media_root / filename
    written = 0

    try:
        async with await anyio.open_file(destination, "wb") as out:
            while True:
                chunk = await video.read(settings.STREAM_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_SIZE:
                    raise ValidationError(
                        "Video file is too large",
                        errors=[{"field": "video", "max_size": settings.MAX_UPLOAD_SIZE}],
                    )
                await out.write(chunk)
    except Exception:
        await anyio.Path(destination).unlink(missing_ok=True)
        raise
    finally:
        await video.close()

    movie = await crud.create_movie(db, schemas.MovieCreate(
        title=title,
        description=description,
        video_path=filename,
        content_type=guess_content_type(filename),
        file_size_bytes=written,
    ))

    logger.info("Video uploaded", movie_id=movie.id, path=str(destination), size=written)
    return _to_response(movie)

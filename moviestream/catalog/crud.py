"""
CRUD операции каталога.
"""

from typing import Optional, List

import structlog
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from . import models, schemas

logger = structlog.get_logger(__name__)


def _get_movie_query(include_inactive: bool = False):
    """Базовый запрос для фильмов."""
    query = select(models.Movie)
    if not include_inactive:
        query = query.where(models.Movie.is_active.is_(True))
    return query


async def get_movie(db: AsyncSession, movie_id: int, include_inactive: bool = False) -> Optional[models.Movie]:
    """Получение фильма по ID."""
    result = await db.execute(
        _get_movie_query(include_inactive).where(models.Movie.id == movie_id)
    )
    return result.scalars().first()


async def list_movies(db: AsyncSession, skip: int = 0, limit: int = 20) -> List[models.Movie]:
    """Список фильмов, новые сначала."""
    result = await db.execute(
        _get_movie_query()
        .order_by(models.Movie.created_at.desc(), models.Movie.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_movies(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(models.Movie).where(models.Movie.is_active.is_(True))
    )
    return result.scalar_one()


async def create_movie(db: AsyncSession, movie_in: schemas.MovieCreate) -> models.Movie:
    """Создание записи о фильме."""
    movie = models.Movie(**movie_in.model_dump(), views=0, is_active=True)
    db.add(movie)
    await db.flush()
    await db.refresh(movie)

    logger.info("Movie created", movie_id=movie.id, title=movie.title)
    return movie


async def increment_views(db: AsyncSession, movie_id: int) -> None:
    """Атомарное увеличение счетчика просмотров."""
    await db.execute(
        update(models.Movie)
        .where(models.Movie.id == movie_id)
        .values(views=models.Movie.views + 1)
    )

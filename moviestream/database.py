# moviestream/database.py
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from moviestream.config import Settings

# Базовый класс для моделей
Base = declarative_base()


def build_engine(settings: Settings) -> AsyncEngine:
    """Асинхронный engine по настройкам приложения"""
    database_url = settings.DATABASE_URL

    if "sqlite" in database_url:
        # Для SQLite пул не настраиваем
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )

    # Для PostgreSQL меняем драйвер на asyncpg
    database_url = database_url.replace("postgresql://", "postgresql+asyncpg://")
    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_size=20,
        max_overflow=40,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    """Фабрика сессий"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency для получения сессии БД"""
    async with request.app.state.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_db_connection(engine: AsyncEngine) -> bool:
    """Проверка подключения к БД"""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True

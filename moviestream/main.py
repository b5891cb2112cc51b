"""
Точка входа MovieStream: фабрика приложения и запуск через uvicorn.
"""

import argparse
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request

from moviestream.analytics import StreamAnalytics, build_analytics
from moviestream.catalog.resolver import DatabaseAssetResolver, MediaAssetResolver
from moviestream.catalog.router import router as catalog_router
from moviestream.config import Settings, get_settings
from moviestream.cors import install_cors
from moviestream.database import build_engine, build_sessionmaker, check_db_connection, create_tables
from moviestream.exceptions import setup_exception_handlers
from moviestream.observability import attach_observability
from moviestream.schemas import HealthCheck
from moviestream.streaming.router import router as streaming_router
from moviestream.streaming.service import MediaStreamer

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    resolver: Optional[MediaAssetResolver] = None,
    analytics: Optional[StreamAnalytics] = None,
) -> FastAPI:
    """
    Сборка FastAPI-приложения.

    Настройки, резолвер и учет просмотров можно передать явно (так делают тесты),
    иначе они строятся из окружения.
    """
    settings = settings or get_settings()

    engine = build_engine(settings)
    sessionmaker = build_sessionmaker(engine)
    resolver = resolver or DatabaseAssetResolver(sessionmaker, settings.MEDIA_ROOT)
    analytics = analytics or build_analytics(settings, sessionmaker)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting MovieStream", environment=settings.ENVIRONMENT, media_root=settings.MEDIA_ROOT)
        Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)
        await create_tables(engine)
        await analytics.start()
        try:
            yield
        finally:
            await analytics.stop()
            await engine.dispose()
            logger.info("MovieStream stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Каталог фильмов и стриминг видео с поддержкой HTTP Range",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.media_streamer = MediaStreamer(resolver, analytics, settings)

    install_cors(app, settings)
    attach_observability(app, settings)
    setup_exception_handlers(app)

    app.include_router(catalog_router)
    app.include_router(streaming_router)

    @app.get("/health", response_model=HealthCheck)
    async def health_check(request: Request) -> HealthCheck:
        """Проверка подключения к базе данных"""
        dependencies_status = {}

        try:
            await check_db_connection(request.app.state.engine)
            dependencies_status["database"] = "healthy"
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            dependencies_status["database"] = "unhealthy"

        return HealthCheck(
            status="healthy" if all(v == "healthy" for v in dependencies_status.values()) else "degraded",
            service="moviestream",
            version=settings.APP_VERSION,
            dependencies=dependencies_status,
        )

    return app


def parse_arguments(argv=None):
    """Парсинг аргументов командной строки."""
    parser = argparse.ArgumentParser(description="MovieStream - каталог и стриминг фильмов")

    parser.add_argument("--host", type=str, help="Хост для запуска сервиса")
    parser.add_argument("--port", type=int, help="Порт для запуска сервиса")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Включить автоматическую перезагрузку при изменении кода"
    )
    parser.add_argument("--config", type=str, help="Путь к файлу конфигурации (.env)")

    return parser.parse_args(argv)


def main(argv=None):
    """Основная функция запуска."""
    args = parse_arguments(argv)

    if args.config:
        load_dotenv(args.config, override=True)
        get_settings.cache_clear()

    settings = get_settings()

    uvicorn.run(
        "moviestream.main:create_app",
        factory=True,
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)

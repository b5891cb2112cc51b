"""
Учет начала просмотра.

Запись выполняется в отдельной задаче и никогда не задерживает отдачу
байт клиенту. Ошибки записи только логируются.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Optional, Set

import structlog
from aiokafka import AIOKafkaProducer
from sqlalchemy.ext.asyncio import async_sessionmaker

from moviestream.catalog import crud
from moviestream.config import Settings
from moviestream.monitoring.metrics import STREAM_STARTS_RECORDED

logger = structlog.get_logger(__name__)


class StreamAnalytics:
    """Базовый учет просмотров: ничего не записывает."""

    backend = "none"

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    async def start(self):
        pass

    async def stop(self):
        """Дожидаемся незавершенных записей перед остановкой"""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def record_stream_start(self, movie_id: Any) -> None:
        """Запускает запись в фоне и сразу возвращает управление"""
        task = asyncio.create_task(self._record(movie_id))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(t, movie_id))

    async def _record(self, movie_id: Any) -> None:
        pass

    def _on_done(self, task: asyncio.Task, movie_id: Any) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            STREAM_STARTS_RECORDED.labels(backend=self.backend, result="error").inc()
            logger.warning("Failed to record stream start", movie_id=movie_id, backend=self.backend, error=str(error))
        else:
            STREAM_STARTS_RECORDED.labels(backend=self.backend, result="ok").inc()


class DatabaseViewCounter(StreamAnalytics):
    """Увеличивает movies.views в каталоге."""

    backend = "database"

    def __init__(self, sessionmaker: async_sessionmaker):
        super().__init__()
        self.sessionmaker = sessionmaker

    async def _record(self, movie_id: Any) -> None:
        async with self.sessionmaker() as session:
            await crud.increment_views(session, int(movie_id))
            await session.commit()


class KafkaStreamEvents(StreamAnalytics):
    """Публикует события stream_started в Kafka."""

    backend = "kafka"

    def __init__(self, bootstrap_servers: str, topic: str, environment: str = "production"):
        super().__init__()
        self.topic = topic
        self.environment = environment
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = bootstrap_servers

    async def start(self):
        self.producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            acks="all",
            enable_idempotence=True,
        )
        await self.producer.start()
        logger.info("Connected to Kafka", bootstrap_servers=self.bootstrap_servers, topic=self.topic)

    async def stop(self):
        await super().stop()
        if self.producer is not None:
            await self.producer.stop()
            self.producer = None

    async def _record(self, movie_id: Any) -> None:
        if self.producer is None:
            raise RuntimeError("Kafka producer is not started")

        payload = {
            "type": "stream_started",
            "data": {"movie_id": str(movie_id)},
            "_metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "producer": "moviestream",
                "environment": self.environment,
            },
        }
        await self.producer.send_and_wait(
            self.topic,
            value=json.dumps(payload).encode(),
            key=str(movie_id).encode(),
        )


def build_analytics(settings: Settings, sessionmaker: async_sessionmaker) -> StreamAnalytics:
    """Выбор реализации по ANALYTICS_BACKEND"""
    if settings.ANALYTICS_BACKEND == "database":
        return DatabaseViewCounter(sessionmaker)
    if settings.ANALYTICS_BACKEND == "kafka":
        return KafkaStreamEvents(
            settings.KAFKA_BOOTSTRAP_SERVERS,
            settings.KAFKA_TOPIC_STREAM_EVENTS,
            settings.ENVIRONMENT,
        )
    return StreamAnalytics()

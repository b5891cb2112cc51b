from __future__ import annotations
import time
import secrets
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response
from prometheus_client import Counter, Histogram, CONTENT_TYPE_LATEST, generate_latest

from moviestream.config import Settings
from moviestream.monitoring.logging import setup_logging


HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total", #имя метрики количества HTTP-запросов
    "Total HTTP requests", #описание метрики
    ["method", "path", "status"], #лейблы для агрегации метрик
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds", #имя метрики времени до отправки заголовков
    "HTTP request duration", #описание метрики
    ["method", "path"], #лейблы для агрегации метрик
)


def _normalize_path(path: str) -> str:
    """
    Приводит URL-путь к обобщенному виду для метрик.

    Пример: /movies/123/stream -> /movies/{id}/stream
    """

    parts = [p for p in path.split("/") if p]
    return "/" + "/".join("{id}" if p.isdigit() else p for p in parts)


def attach_observability(app: FastAPI, settings: Settings) -> None:
    """
    Подключает логи, request_id и метрики к FastAPI-приложению.
    """

    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON) #инициализируем логирование с уровнем из настроек

    @app.middleware("http")
    async def observability_middleware(
        request: Request,
        call_next: Callable,
    ):
        """
        Middleware для корреляции логов по request_id
        и сбора метрик времени выполнения.
        """

        rid = request.headers.get("x-request-id") or _gen_request_id() #берем request_id из заголовка или генерируем новый
        structlog.contextvars.bind_contextvars(request_id=rid) #request_id попадает во все логи запроса

        start = time.perf_counter()
        status = 500 #статус по умолчанию

        try:
            response: Response = await call_next(request)
            status = response.status_code
            response.headers["x-request-id"] = rid
            return response
        finally:
            if settings.METRICS_ENABLED:
                elapsed = time.perf_counter() - start
                path = _normalize_path(request.url.path)

                HTTP_REQUESTS_TOTAL.labels(
                    method=request.method,
                    path=path,
                    status=str(status),
                ).inc()

                HTTP_REQUEST_DURATION.labels(
                    method=request.method,
                    path=path,
                ).observe(elapsed)

            structlog.contextvars.unbind_contextvars("request_id")

    if settings.METRICS_ENABLED:

        @app.get("/metrics", include_in_schema=False)
        def metrics():
            """
            HTTP-endpoint для отдачи метрик в формате Prometheus.
            """
            return Response(
                content=generate_latest(),
                media_type=CONTENT_TYPE_LATEST,
            )


def _gen_request_id() -> str:
    """Генерирует уникальный идентификатор запроса."""
    return secrets.token_hex(16)

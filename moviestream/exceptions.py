"""
Кастомные исключения MovieStream.
Все исключения наследуются от ServiceException.
"""

from typing import Optional, Dict, Any, List

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from moviestream.schemas import ErrorResponse

logger = structlog.get_logger(__name__)


class ServiceException(Exception):
    """
    Базовое исключение для всех сервисов.

    Attributes:
        message: Сообщение об ошибке
        code: Уникальный код ошибки
        status_code: HTTP статус код
        details: Дополнительные детали ошибки
        headers: Заголовки, которые нужно вернуть клиенту
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.message = message
        self.code = code or "INTERNAL_ERROR"
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)


class ValidationError(ServiceException):
    """Ошибка валидации данных."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        code: str = "VALIDATION_ERROR"
    ):
        details = {"errors": errors or []}
        super().__init__(message, code, status.HTTP_400_BAD_REQUEST, details)


class NotFoundError(ServiceException):
    """Ресурс не найден."""

    def __init__(
        self,
        resource: str,
        resource_id: Optional[Any] = None,
        code: str = "NOT_FOUND"
    ):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with id {resource_id} not found"

        details = {"resource": resource, "resource_id": resource_id}
        super().__init__(message, code, status.HTTP_404_NOT_FOUND, details)


class StorageInconsistencyError(NotFoundError):
    """
    В каталоге есть запись о фильме, но файла на диске нет.
    Клиент получает 404, для нас это ошибка учёта.
    """

    def __init__(self, movie_id: Any, path: str):
        super().__init__("Video file", movie_id, code="MEDIA_FILE_MISSING")
        self.path = path


class TransientIOError(Exception):
    """
    Ошибка чтения файла во время отдачи потока.

    Возникает уже после отправки заголовков, поэтому не превращается
    в JSON-ответ: сервер обрывает соединение, а плеер повторяет запрос
    с последней известной позиции.
    """

    def __init__(self, movie_id: Any, start: int, end: int):
        self.movie_id = movie_id
        self.start = start
        self.end = end
        super().__init__(f"Failed to read video {movie_id} at bytes {start}-{end}")


def setup_exception_handlers(app: FastAPI) -> None:
    """Регистрация обработчиков исключений в приложении."""

    @app.exception_handler(ServiceException)
    async def service_exception_handler(request: Request, exc: ServiceException):
        """Обработчик кастомных исключений."""
        logger.warning("Service exception", detail=exc.message, code=exc.code, path=request.url.path)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                detail=exc.message,
                code=exc.code,
                errors=exc.details.get("errors") if "errors" in exc.details else None
            ).model_dump(mode="json"),
            headers=exc.headers or None
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Обработчик HTTP исключений."""
        logger.warning("HTTP exception", detail=exc.detail, status_code=exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                detail=str(exc.detail),
                code="HTTP_ERROR"
            ).model_dump(mode="json"),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Обработчик непредвиденных исключений."""
        logger.exception("Unexpected error", error=str(exc), path=request.url.path)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                detail="Internal server error",
                code="INTERNAL_ERROR"
            ).model_dump(mode="json")
        )

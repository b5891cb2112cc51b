# moviestream/config.py
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, List
from functools import lru_cache
import json


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "MovieStream"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["*"]
    CORS_ALLOW_METHODS: Annotated[List[str], NoDecode] = ["GET", "HEAD", "OPTIONS"]
    CORS_ALLOW_HEADERS: Annotated[List[str], NoDecode] = ["Range", "Content-Type", "Accept"]
    CORS_EXPOSE_HEADERS: Annotated[List[str], NoDecode] = ["Content-Range", "Content-Length", "Accept-Ranges"]

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./moviestream.db"

    # Storage
    MEDIA_ROOT: str = "./uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024 * 1024  # 5GB

    # Streaming
    STREAM_CHUNK_SIZE: int = 1024 * 1024  # 1MB
    STREAM_CACHE_MAX_AGE: int = 3600  # 1 hour

    # Analytics: database | kafka | none
    ANALYTICS_BACKEND: str = "database"
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_TOPIC_STREAM_EVENTS: str = "stream_events"

    # Monitoring
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    METRICS_ENABLED: bool = True

    @field_validator(
        "CORS_ORIGINS", "CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_list(cls, v):
        """Списки из env: JSON-массив или строка через запятую"""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("STREAM_CHUNK_SIZE")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("STREAM_CHUNK_SIZE must be positive")
        return v

    @field_validator("ANALYTICS_BACKEND")
    @classmethod
    def validate_analytics_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("database", "kafka", "none"):
            raise ValueError("ANALYTICS_BACKEND must be one of: database, kafka, none")
        return v

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache()
def get_settings() -> Settings:
    return Settings()

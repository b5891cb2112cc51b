"""
Pydantic схемы каталога.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime


class MovieCreate(BaseModel):
    """Схема для создания фильма."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    video_path: str
    content_type: Optional[str] = None
    file_size_bytes: Optional[int] = Field(None, ge=0)
    duration: Optional[float] = Field(None, ge=0)


class MovieResponse(BaseModel):
    """Схема ответа для фильма."""
    id: int
    title: str
    description: str
    content_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    duration: Optional[float] = None
    views: int = 0
    stream_url: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MovieList(BaseModel):
    """Страница списка фильмов."""
    items: List[MovieResponse]
    total: int
    page: int = Field(ge=1, default=1)
    size: int = Field(ge=1, le=100, default=20)

"""
Схемы стриминга.
"""

from pydantic import BaseModel, ConfigDict, Field


class MediaAsset(BaseModel):
    """
    Видеофайл фильма, готовый к отдаче.

    Attributes:
        id: ID фильма в каталоге
        file_path: Абсолютный путь к файлу
        size_bytes: Размер файла
        content_type: MIME-тип для заголовка Content-Type
    """
    id: str
    file_path: str
    size_bytes: int = Field(..., ge=0)
    content_type: str = "video/mp4"

    model_config = ConfigDict(frozen=True)

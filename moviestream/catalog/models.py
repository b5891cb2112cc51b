"""
Модели базы данных каталога.
"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, Boolean, BigInteger
from sqlalchemy.sql import func

from moviestream.database import Base


class Movie(Base):
    """
    Модель фильма.

    Attributes:
        id: ID фильма
        title: Название
        description: Описание
        video_path: Путь к видеофайлу (относительно MEDIA_ROOT или абсолютный)
        content_type: MIME-тип видео, если известен при загрузке
        file_size_bytes: Размер файла на момент загрузки
        thumbnail_path: Путь к превью
        duration: Длительность в минутах
        views: Количество просмотров
        is_active: Флаг мягкого удаления
        created_at: Дата создания
        updated_at: Дата обновления
    """

    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    video_path = Column(String(500))
    content_type = Column(String(100))
    file_size_bytes = Column(BigInteger)
    thumbnail_path = Column(String(500))
    duration = Column(Float)

    views = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

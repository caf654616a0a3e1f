from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deutschshikhi.db.base_class import Base

if TYPE_CHECKING:
    from .exercise_model import Exercise
    from .level_model import Level
    from .word_model import Word


class ContentStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    level_id: Mapped[int] = mapped_column(ForeignKey("levels.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Position dans le niveau; seule relation de dépendance entre leçons.
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    status: Mapped[ContentStatus] = mapped_column(
        Enum(ContentStatus, name="contentstatus", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ContentStatus.DRAFT,
        server_default=ContentStatus.DRAFT.value,
    )
    content: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    level: Mapped["Level"] = relationship(back_populates="lessons")
    words: Mapped[List["Word"]] = relationship(back_populates="lesson", cascade="all, delete-orphan")
    exercises: Mapped[List["Exercise"]] = relationship(back_populates="lesson", cascade="all, delete-orphan")

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Lesson(id={self.id}, level_id={self.level_id}, order={self.order})>"

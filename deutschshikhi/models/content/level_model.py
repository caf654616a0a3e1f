from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deutschshikhi.db.base_class import Base

if TYPE_CHECKING:
    from .lesson_model import Lesson


class Level(Base):
    """Niveau CECRL (A1, A2, ...) regroupant des leçons ordonnées."""

    __tablename__ = "levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    lessons: Mapped[List["Lesson"]] = relationship(
        back_populates="level",
        cascade="all, delete-orphan",
        order_by="Lesson.order",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Level(id={self.id}, code='{self.code}')>"

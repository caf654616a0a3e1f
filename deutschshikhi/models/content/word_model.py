from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deutschshikhi.db.base_class import Base

if TYPE_CHECKING:
    from .lesson_model import Lesson


class Word(Base):
    __tablename__ = "words"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    lesson_id: Mapped[Optional[int]] = mapped_column(ForeignKey("lessons.id"), index=True, nullable=True)
    german: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    meaning: Mapped[str] = mapped_column(String(500), nullable=False)
    pronunciation: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    example: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    part_of_speech: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    lesson: Mapped[Optional["Lesson"]] = relationship(back_populates="words")

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deutschshikhi.db.base_class import Base

if TYPE_CHECKING:
    from .lesson_model import Lesson


class ExerciseType(str, enum.Enum):
    MCQ = "mcq"
    FILL = "fill"
    MATCH = "match"


class Exercise(Base):
    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    lesson_id: Mapped[int] = mapped_column(ForeignKey("lessons.id"), index=True, nullable=False)
    # Texte libre: un type inconnu est refusé par le correcteur, pas par la base.
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    # Jamais exposé par l'API publique.
    answer_key: Mapped[Any] = mapped_column(JSON, nullable=True)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    lesson: Mapped["Lesson"] = relationship(back_populates="exercises")

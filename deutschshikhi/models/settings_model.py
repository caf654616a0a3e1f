from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from deutschshikhi.db.base_class import Base


class AppSettings(Base):
    """Réglages globaux de l'application (ligne unique, id = 1)."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    min_passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    allow_retakes: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # 0 = illimité
    max_retakes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    show_correct_answers: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    require_sequential_lessons: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

from __future__ import annotations
from sqlalchemy import Boolean, Integer, String, DateTime, func, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from deutschshikhi.db.base_class import Base
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .user_model import User


class UserAchievement(Base):
    """Succès débloqué par un utilisateur. Les lignes ne sont jamais supprimées individuellement."""

    __tablename__ = "user_achievements"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    # Identifiant de la définition statique (ex: "bronze_learner").
    achievement_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    claimed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reward: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    user: Mapped["User"] = relationship(back_populates="user_achievements")

    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="_user_achievement_uc"),)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<UserAchievement(user_id={self.user_id}, achievement_id='{self.achievement_id}')>"

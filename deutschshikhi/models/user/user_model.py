from sqlalchemy import Integer, String, Date, DateTime, JSON, func, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from deutschshikhi.db.base_class import Base
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import date, datetime
import enum

if TYPE_CHECKING:
    from .achievement_model import UserAchievement
    from ..progress.lesson_progress_model import LessonProgress


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class UserLanguage(str, enum.Enum):
    BN = "bn"
    EN = "en"


class User(Base):
    __tablename__ = "users"

    # --- Identité ---
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    auth_uid: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), index=True, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    language: Mapped[UserLanguage] = mapped_column(
        Enum(UserLanguage, name="userlanguage", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=UserLanguage.BN,
        server_default=UserLanguage.BN.value,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=UserRole.USER,
        server_default=UserRole.USER.value,
    )

    # --- XP ---
    xp_points: Mapped[Optional[int]] = mapped_column(Integer, default=0, server_default="0")
    # Cache: toujours recalculé depuis xp_points.
    level: Mapped[Optional[int]] = mapped_column(Integer, default=1, server_default="1")

    # --- Série (streak) ---
    streak_current: Mapped[Optional[int]] = mapped_column(Integer, default=0, server_default="0")
    streak_longest: Mapped[Optional[int]] = mapped_column(Integer, default=0, server_default="0")
    streak_last_activity: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # --- Objectif quotidien ---
    daily_goal_target: Mapped[Optional[int]] = mapped_column(Integer, default=50, server_default="50")
    daily_goal_today_xp: Mapped[Optional[int]] = mapped_column(Integer, default=0, server_default="0")
    daily_goal_last_reset: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Compteurs des succès. Toujours réassigné, jamais muté en place.
    achievement_progress: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # --- Relations ---
    lesson_progress: Mapped[List["LessonProgress"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    user_achievements: Mapped[List["UserAchievement"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserAchievement.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, auth_uid='{self.auth_uid}')>"

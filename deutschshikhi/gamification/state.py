"""
État de gamification embarqué dans la ligne ``users``.

Les colonnes peuvent être NULL pour les comptes anciens: c'est ici, et
seulement ici, que les valeurs par défaut sont construites.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from deutschshikhi.gamification.leveling import compute_level
from deutschshikhi.gamification.xp_rules import DEFAULT_DAILY_GOAL_TARGET

if TYPE_CHECKING:
    from deutschshikhi.models.user.user_model import User


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class XPState(_CamelModel):
    total: int = 0
    level: int = 1
    current_level_xp: int = Field(0, alias="currentLevelXp")
    next_level_xp: int = Field(100, alias="nextLevelXp")

    @classmethod
    def from_total(cls, total: Optional[int]) -> "XPState":
        info = compute_level(total or 0)
        return cls(
            total=max(int(total or 0), 0),
            level=info.level,
            current_level_xp=info.current_level_xp,
            next_level_xp=info.next_level_xp,
        )


class StreakState(_CamelModel):
    current: int = 0
    longest: int = 0
    last_activity_date: Optional[date] = Field(None, alias="lastActivityDate")


class DailyGoalState(_CamelModel):
    target: int = DEFAULT_DAILY_GOAL_TARGET
    today_xp: int = Field(0, alias="todayXp")
    last_reset_date: Optional[date] = Field(None, alias="lastResetDate")

    def today_xp_on(self, today: date) -> int:
        """``todayXp`` tel qu'il doit être lu à la date ``today``."""
        if self.last_reset_date != today:
            return 0
        return self.today_xp


PROGRESS_KEYS = (
    "totalXp",
    "longestStreak",
    "lessonsCompleted",
    "wordsLearned",
    "quizzesCompleted",
    "perfectScores",
    "currentLevel",
    "grammarCompleted",
)


class AchievementProgress(_CamelModel):
    total_xp: int = Field(0, alias="totalXp")
    longest_streak: int = Field(0, alias="longestStreak")
    lessons_completed: int = Field(0, alias="lessonsCompleted")
    words_learned: int = Field(0, alias="wordsLearned")
    quizzes_completed: int = Field(0, alias="quizzesCompleted")
    perfect_scores: int = Field(0, alias="perfectScores")
    current_level: int = Field(1, alias="currentLevel")
    grammar_completed: int = Field(0, alias="grammarCompleted")

    def get(self, key: str) -> int:
        return int(self.as_dict().get(key, 0))

    def with_updates(self, updates: Mapping[str, int]) -> "AchievementProgress":
        data = self.as_dict()
        data.update(updates)
        return AchievementProgress.model_validate(data)

    def as_dict(self) -> Dict[str, int]:
        return self.model_dump(by_alias=True)


class UnlockedAchievement(_CamelModel):
    id: str
    unlocked_at: datetime = Field(alias="unlockedAt")
    claimed: bool = False
    claimed_at: Optional[datetime] = Field(None, alias="claimedAt")
    reward: int = 0


class GamificationState(BaseModel):
    xp: XPState
    streak: StreakState
    daily_goal: DailyGoalState
    achievement_progress: AchievementProgress


def read_state(user: "User") -> GamificationState:
    """Construit l'état complet d'un utilisateur, valeurs par défaut comprises."""
    xp = XPState.from_total(user.xp_points)

    current = max(int(user.streak_current or 0), 0)
    streak = StreakState(
        current=current,
        longest=max(int(user.streak_longest or 0), current),
        last_activity_date=user.streak_last_activity,
    )

    daily_goal = DailyGoalState(
        target=user.daily_goal_target or DEFAULT_DAILY_GOAL_TARGET,
        today_xp=user.daily_goal_today_xp or 0,
        last_reset_date=user.daily_goal_last_reset,
    )

    return GamificationState(
        xp=xp,
        streak=streak,
        daily_goal=daily_goal,
        achievement_progress=read_achievement_progress(user, xp=xp, streak=streak),
    )


def read_achievement_progress(
    user: "User",
    *,
    xp: Optional[XPState] = None,
    streak: Optional[StreakState] = None,
) -> AchievementProgress:
    stored: Optional[Dict[str, Any]] = user.achievement_progress
    if stored:
        known = {key: value for key, value in stored.items() if key in PROGRESS_KEYS}
        return AchievementProgress.model_validate(known)

    xp = xp or XPState.from_total(user.xp_points)
    longest = streak.longest if streak else max(int(user.streak_longest or 0), int(user.streak_current or 0))
    return AchievementProgress(
        total_xp=xp.total,
        longest_streak=longest,
        current_level=xp.level,
    )


def write_state(
    user: "User",
    *,
    xp: Optional[XPState] = None,
    streak: Optional[StreakState] = None,
    daily_goal: Optional[DailyGoalState] = None,
    achievement_progress: Optional[AchievementProgress] = None,
) -> None:
    """Reporte les sous-états fournis sur les colonnes de ``user``."""
    if xp is not None:
        user.xp_points = xp.total
        user.level = xp.level
    if streak is not None:
        user.streak_current = streak.current
        user.streak_longest = streak.longest
        user.streak_last_activity = streak.last_activity_date
    if daily_goal is not None:
        user.daily_goal_target = daily_goal.target
        user.daily_goal_today_xp = daily_goal.today_xp
        user.daily_goal_last_reset = daily_goal.last_reset_date
    if achievement_progress is not None:
        # Nouvel objet: le type JSON ne détecte pas les mutations en place.
        user.achievement_progress = achievement_progress.as_dict()

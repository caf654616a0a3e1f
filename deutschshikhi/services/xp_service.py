"""
Attribution d'XP, séries et objectif quotidien.

``award_xp`` et ``get_xp_status`` sont des fonctions pures: elles prennent un
état et une date et renvoient un nouvel état. ``XPService`` les applique à
l'utilisateur connecté en une seule transaction.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from deutschshikhi.core.errors import InvalidInputError
from deutschshikhi.crud.user_crud import update_user_state
from deutschshikhi.gamification.leveling import compute_level, level_for_total
from deutschshikhi.gamification.state import (
    DailyGoalState,
    GamificationState,
    StreakState,
    XPState,
    read_state,
    write_state,
)
from deutschshikhi.gamification.streaks import STREAK_MILESTONE_BONUSES, is_streak_active, update_streak
from deutschshikhi.gamification.xp_rules import (
    DEFAULT_DAILY_GOAL_TARGET,
    QUIZ_GOOD_THRESHOLD,
    VALID_DAILY_GOAL_TARGETS,
    XP_REWARDS,
    Reward,
    base_reward,
)
from deutschshikhi.models.user.user_model import User
from deutschshikhi.services.achievement_service import unlock_crossed

logger = logging.getLogger(__name__)


@dataclass
class AwardResult:
    xp_earned: int
    rewards: List[Reward]
    leveled_up: bool
    new_level: Optional[int]
    streak_updated: bool
    streak_broken: bool
    xp: XPState
    streak: StreakState
    daily_goal: DailyGoalState
    new_achievements: List[Dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "xpEarned": self.xp_earned,
            "rewards": [reward.as_dict() for reward in self.rewards],
            "leveledUp": self.leveled_up,
            "newLevel": self.new_level,
            "streakUpdated": self.streak_updated,
            "streakBroken": self.streak_broken,
            "xp": self.xp.model_dump(by_alias=True),
            "streak": self.streak.model_dump(by_alias=True),
            "dailyGoal": self.daily_goal.model_dump(by_alias=True),
            "newAchievements": self.new_achievements,
        }


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def award_xp(
    state: GamificationState,
    activity_type: Any,
    options: Optional[Mapping[str, Any]] = None,
    *,
    today: date,
) -> AwardResult:
    """Calcule l'XP gagnée pour une activité et l'état qui en résulte."""
    reward = base_reward(activity_type, options)
    rewards: List[Reward] = [reward]
    xp_earned = reward.xp

    streak_update = update_streak(
        state.streak.current,
        state.streak.longest,
        state.streak.last_activity_date,
        today,
    )
    if streak_update.updated:
        for bonus in streak_update.bonuses:
            xp_earned += bonus.xp
            rewards.append(Reward(bonus.type, bonus.xp, bonus.message))

    daily_goal = state.daily_goal
    previous_today_xp = daily_goal.today_xp_on(today)
    today_xp = previous_today_xp + xp_earned
    if previous_today_xp < daily_goal.target <= today_xp:
        bonus_xp = XP_REWARDS["DAILY_GOAL_BONUS"]
        xp_earned += bonus_xp
        rewards.append(Reward("DAILY_GOAL_BONUS", bonus_xp, "Daily goal achieved!"))

    previous_level = level_for_total(state.xp.total)
    new_xp = XPState.from_total(state.xp.total + xp_earned)
    leveled_up = new_xp.level > previous_level

    return AwardResult(
        xp_earned=xp_earned,
        rewards=rewards,
        leveled_up=leveled_up,
        new_level=new_xp.level if leveled_up else None,
        streak_updated=streak_update.updated,
        streak_broken=streak_update.broken,
        xp=new_xp,
        streak=StreakState(
            current=streak_update.current,
            longest=streak_update.longest,
            last_activity_date=streak_update.last_activity_date,
        ),
        daily_goal=DailyGoalState(
            target=daily_goal.target,
            today_xp=today_xp,
            last_reset_date=today,
        ),
    )


def get_xp_status(state: GamificationState, *, today: date) -> Dict[str, Any]:
    """Vue recalculée de l'XP, de la série et de l'objectif du jour."""
    info = compute_level(state.xp.total)
    level_progress = info.current_level_xp / info.next_level_xp * 100

    streak = state.streak
    active = is_streak_active(streak.last_activity_date, today)
    extended_today = streak.last_activity_date is not None and streak.last_activity_date >= today

    goal = state.daily_goal
    today_xp = goal.today_xp_on(today)
    daily_progress = min(today_xp / goal.target * 100, 100) if goal.target else 100

    return {
        "xp": {
            "total": state.xp.total,
            "level": info.level,
            "currentLevelXp": info.current_level_xp,
            "nextLevelXp": info.next_level_xp,
            "totalXpForNextLevel": info.total_xp_for_next_level,
            "levelProgress": _round1(level_progress),
        },
        "streak": {
            "current": streak.current,
            "longest": streak.longest,
            "lastActivityDate": streak.last_activity_date,
            "isActive": active,
            "willExpireToday": active and not extended_today,
        },
        "dailyGoal": {
            "target": goal.target,
            "todayXp": today_xp,
            "progress": _round1(daily_progress),
            "completed": today_xp >= goal.target,
        },
    }


def reward_table() -> Dict[str, int]:
    return dict(XP_REWARDS)


def xp_settings() -> Dict[str, Any]:
    """Barème public dont le client a besoin pour afficher les gains."""
    return {
        "rewards": reward_table(),
        "quizThresholds": {"perfect": 100, "good": QUIZ_GOOD_THRESHOLD},
        "streakBonuses": [{"days": days, "xp": xp} for days, xp in sorted(STREAK_MILESTONE_BONUSES.items())],
        "dailyGoal": {
            "completionBonus": XP_REWARDS["DAILY_GOAL_BONUS"],
            "defaultTarget": DEFAULT_DAILY_GOAL_TARGET,
            "options": list(VALID_DAILY_GOAL_TARGETS),
        },
    }


class XPService:
    """Applique le calcul d'XP à l'utilisateur connecté."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def award(self, activity_type: Any, options: Optional[Mapping[str, Any]] = None) -> AwardResult:
        """XP, série, objectif, compteurs miroirs et scan des succès: un seul commit."""
        now = self._utcnow()
        today = now.date()

        def mutate(user: User) -> AwardResult:
            state = read_state(user)
            result = award_xp(state, activity_type, options, today=today)
            progress = state.achievement_progress.with_updates(
                {
                    "totalXp": result.xp.total,
                    "currentLevel": result.xp.level,
                    "longestStreak": result.streak.longest,
                }
            )
            write_state(
                user,
                xp=result.xp,
                streak=result.streak,
                daily_goal=result.daily_goal,
                achievement_progress=progress,
            )
            result.new_achievements = unlock_crossed(self.db, user, progress, now)
            return result

        result = update_user_state(self.db, self.user.id, mutate)
        logger.info(
            "XP attribuée à l'utilisateur %s: +%s (%s), total=%s niveau=%s",
            self.user.id,
            result.xp_earned,
            activity_type,
            result.xp.total,
            result.xp.level,
        )
        return result

    def status(self) -> Dict[str, Any]:
        return get_xp_status(read_state(self.user), today=self._utcnow().date())

    def set_daily_goal(self, target: int) -> DailyGoalState:
        if isinstance(target, bool) or target not in VALID_DAILY_GOAL_TARGETS:
            raise InvalidInputError(
                "invalid_daily_goal",
                "Daily goal must be one of: " + ", ".join(str(v) for v in VALID_DAILY_GOAL_TARGETS),
                {"allowed": list(VALID_DAILY_GOAL_TARGETS)},
            )

        def mutate(user: User) -> DailyGoalState:
            goal = read_state(user).daily_goal.model_copy(update={"target": target})
            write_state(user, daily_goal=goal)
            return goal

        return update_user_state(self.db, self.user.id, mutate)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from deutschshikhi.core.config import settings
from deutschshikhi.core.errors import InvalidInputError
from deutschshikhi.gamification.leveling import level_for_total
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.models.user.user_model import User, UserRole

DEFAULT_LIMIT = 50
DEFAULT_XP_LEADERBOARD_LIMIT = 20
DEFAULT_NEIGHBOUR_RANGE = 5
MAX_NEIGHBOUR_RANGE = 20

_xp_total = func.coalesce(User.xp_points, 0)


class LeaderboardPeriod(str, enum.Enum):
    ALL = "all"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_PERIOD_DAYS = {LeaderboardPeriod.WEEKLY: 7, LeaderboardPeriod.MONTHLY: 30}


def parse_period(value: Optional[str]) -> LeaderboardPeriod:
    try:
        return LeaderboardPeriod(value or LeaderboardPeriod.ALL.value)
    except ValueError as exc:
        raise InvalidInputError(
            "invalid_period",
            "Invalid period. Must be all, weekly or monthly.",
            {"allowed": [item.value for item in LeaderboardPeriod]},
        ) from exc


def clamp_limit(limit: Optional[int], default: int = DEFAULT_LIMIT) -> int:
    if limit is None or limit <= 0:
        return default
    return min(int(limit), settings.LEADERBOARD_MAX_LIMIT)


def _entry(user: User, rank: int) -> Dict[str, Any]:
    total = user.xp_points or 0
    return {
        "rank": rank,
        "userId": user.id,
        "name": user.name or "Anonymous",
        "photoUrl": user.photo_url,
        "xp": total,
        "level": level_for_total(total),
        "currentStreak": user.streak_current or 0,
        "longestStreak": user.streak_longest or 0,
    }


class LeaderboardService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_leaderboard(
        self,
        period: Optional[str] = None,
        limit: Optional[int] = None,
        current_user: Optional[User] = None,
    ) -> Dict[str, Any]:
        """Classement par XP totale; le rang d'un utilisateur = nombre de devants + 1."""
        parsed = parse_period(period)
        limit = clamp_limit(limit)

        users = (
            self._period_query(parsed)
            .order_by(_xp_total.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        leaderboard = [_entry(user, index + 1) for index, user in enumerate(users)]

        current = None
        if current_user is not None:
            current = _entry(current_user, self.rank_of(current_user, parsed))

        return {
            "leaderboard": leaderboard,
            "currentUser": current,
            "period": parsed.value,
            "total": len(leaderboard),
        }

    def rank_of(self, user: User, period: LeaderboardPeriod = LeaderboardPeriod.ALL) -> int:
        ahead = self._period_query(period).filter(_xp_total > (user.xp_points or 0)).count()
        return ahead + 1

    def get_neighbours(
        self,
        user: User,
        period: Optional[str] = None,
        range_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        parsed = parse_period(period)
        span = min(range_size or DEFAULT_NEIGHBOUR_RANGE, MAX_NEIGHBOUR_RANGE)
        span = max(span, 1)
        own_total = user.xp_points or 0
        own_rank = self.rank_of(user, parsed)

        above = (
            self._period_query(parsed)
            .filter(_xp_total > own_total)
            .order_by(_xp_total.asc(), User.id.desc())
            .limit(span)
            .all()
        )
        above.reverse()
        below = (
            self._period_query(parsed)
            .filter(_xp_total < own_total)
            .order_by(_xp_total.desc(), User.id.asc())
            .limit(span)
            .all()
        )

        current = _entry(user, own_rank)
        nearby: List[Dict[str, Any]] = [
            _entry(other, own_rank - len(above) + index) for index, other in enumerate(above)
        ]
        nearby.append({**current, "isCurrentUser": True})
        nearby.extend(_entry(other, own_rank + index + 1) for index, other in enumerate(below))

        return {"currentUser": current, "nearbyUsers": nearby, "period": parsed.value}

    def get_stats(self) -> Dict[str, Any]:
        total_users, total_xp, average_xp, highest_xp, highest_streak = self.db.query(
            func.count(User.id),
            func.coalesce(func.sum(_xp_total), 0),
            func.avg(_xp_total),
            func.coalesce(func.max(_xp_total), 0),
            func.coalesce(func.max(func.coalesce(User.streak_longest, 0)), 0),
        ).one()
        return {
            "totalUsers": int(total_users or 0),
            "totalXp": int(total_xp or 0),
            "averageXp": round(float(average_xp or 0)),
            "highestXp": int(highest_xp or 0),
            "highestStreak": int(highest_streak or 0),
        }

    def get_xp_leaderboard(
        self,
        board_type: str = "total",
        limit: Optional[int] = None,
        current_user: Optional[User] = None,
    ) -> Dict[str, Any]:
        """Classement des utilisateurs non administrateurs par XP, série ou niveau."""
        columns = {
            "total": _xp_total,
            "streak": func.coalesce(User.streak_current, 0),
            "level": func.coalesce(User.level, 1),
        }
        if board_type not in columns:
            raise InvalidInputError(
                "invalid_leaderboard_type",
                "Invalid leaderboard type. Must be total, streak or level.",
                {"allowed": list(columns)},
            )
        column = columns[board_type]
        limit = clamp_limit(limit, DEFAULT_XP_LEADERBOARD_LIMIT)

        base = self.db.query(User).filter(User.role != UserRole.ADMIN)
        users = base.order_by(column.desc(), User.id.asc()).limit(limit).all()

        current = None
        if current_user is not None:
            own_value = {
                "total": current_user.xp_points or 0,
                "streak": current_user.streak_current or 0,
                "level": level_for_total(current_user.xp_points or 0),
            }[board_type]
            current = {
                "rank": base.filter(column > own_value).count() + 1,
                "xp": current_user.xp_points or 0,
                "level": level_for_total(current_user.xp_points or 0),
                "streak": current_user.streak_current or 0,
            }

        return {
            "leaderboard": [
                {
                    "rank": index + 1,
                    "id": user.id,
                    "name": user.name or "Anonymous",
                    "photoUrl": user.photo_url,
                    "xp": user.xp_points or 0,
                    "level": level_for_total(user.xp_points or 0),
                    "streak": user.streak_current or 0,
                }
                for index, user in enumerate(users)
            ],
            "currentUser": current,
            "type": board_type,
        }

    def get_lessons_leaderboard(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Variante: leçons réussies, puis score moyen."""
        limit = clamp_limit(limit)
        lessons_completed = func.count(LessonProgress.id).label("lessons_completed")
        average_score = func.avg(LessonProgress.score).label("average_score")
        rows = (
            self.db.query(User, lessons_completed, average_score)
            .join(LessonProgress, LessonProgress.user_id == User.id)
            .filter(LessonProgress.passed.is_(True))
            .group_by(User.id)
            .order_by(lessons_completed.desc(), average_score.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return {
            "leaderboard": [
                {
                    "rank": index + 1,
                    "userId": user.id,
                    "name": user.name or "Anonymous",
                    "photoUrl": user.photo_url,
                    "lessonsCompleted": int(completed or 0),
                    "averageScore": round(float(avg or 0)),
                }
                for index, (user, completed, avg) in enumerate(rows)
            ],
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _period_query(self, period: LeaderboardPeriod) -> Query:
        query = self.db.query(User)
        days = _PERIOD_DAYS.get(period)
        if days is not None:
            query = query.filter(User.updated_at >= self._utcnow() - timedelta(days=days))
        return query

    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)

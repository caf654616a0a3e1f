"""
Barème d'XP par activité.

Chaque activité produit une entrée de récompense ``{type, xp, message}``
renvoyée telle quelle au client.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from deutschshikhi.core.errors import InvalidInputError
from deutschshikhi.gamification.streaks import STREAK_MILESTONE_BONUSES


class ActivityType(str, enum.Enum):
    COMPLETE_LESSON = "COMPLETE_LESSON"
    COMPLETE_QUIZ = "COMPLETE_QUIZ"
    LEARN_WORD = "LEARN_WORD"
    REVIEW_WORD = "REVIEW_WORD"


XP_REWARDS: Dict[str, int] = {
    "COMPLETE_LESSON": 20,
    "QUIZ_PERFECT": 30,
    "QUIZ_GOOD": 20,
    "QUIZ_PASS": 10,
    "LEARN_WORD": 5,
    "REVIEW_WORD_CORRECT": 2,
    "REVIEW_WORD_WRONG": 1,
    "DAILY_GOAL_BONUS": 10,
    **{f"STREAK_{days}_DAYS": xp for days, xp in STREAK_MILESTONE_BONUSES.items()},
}

QUIZ_GOOD_THRESHOLD = 70
VALID_DAILY_GOAL_TARGETS = (10, 20, 30, 50, 100)
DEFAULT_DAILY_GOAL_TARGET = 50


@dataclass(frozen=True)
class Reward:
    type: str
    xp: int
    message: str

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "xp": self.xp, "message": self.message}


def parse_activity_type(value: Any) -> ActivityType:
    try:
        return ActivityType(value)
    except ValueError as exc:
        raise InvalidInputError(
            "invalid_activity_type",
            f"Invalid activity type: {value!r}",
            {"allowed": [item.value for item in ActivityType]},
        ) from exc


def parse_quiz_score(value: Any) -> float:
    """Score de quiz en pourcentage; absent vaut 0."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
        raise InvalidInputError(
            "invalid_score",
            "Quiz score must be a number between 0 and 100.",
            {"score": value},
        )
    return value


def base_reward(activity_type: Any, options: Optional[Mapping[str, Any]] = None) -> Reward:
    """Récompense de base d'une activité, avant série et objectif quotidien."""
    activity = parse_activity_type(activity_type)
    options = options or {}

    if activity is ActivityType.COMPLETE_LESSON:
        return Reward("COMPLETE_LESSON", XP_REWARDS["COMPLETE_LESSON"], "Lesson completed!")

    if activity is ActivityType.COMPLETE_QUIZ:
        score = parse_quiz_score(options.get("score"))
        if score == 100:
            return Reward("QUIZ_PERFECT", XP_REWARDS["QUIZ_PERFECT"], "Perfect quiz score!")
        if score >= QUIZ_GOOD_THRESHOLD:
            return Reward("QUIZ_GOOD", XP_REWARDS["QUIZ_GOOD"], "Great quiz score!")
        return Reward("QUIZ_PASS", XP_REWARDS["QUIZ_PASS"], "Quiz completed!")

    if activity is ActivityType.LEARN_WORD:
        return Reward("LEARN_WORD", XP_REWARDS["LEARN_WORD"], "New word learned!")

    if options.get("correct"):
        return Reward("REVIEW_WORD_CORRECT", XP_REWARDS["REVIEW_WORD_CORRECT"], "Correct answer!")
    return Reward("REVIEW_WORD_WRONG", XP_REWARDS["REVIEW_WORD_WRONG"], "Keep practicing!")

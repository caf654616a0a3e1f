"""
Suivi des compteurs de succès après une action de l'utilisateur.

Chaque tracker lit puis incrémente un compteur sur l'état relu, recopie l'XP et le
niveau courants puis relance le scan. Un échec de persistance est journalisé
et renvoie une liste vide: l'action principale a déjà été validée.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deutschshikhi.core.errors import ConflictError
from deutschshikhi.crud.user_crud import update_user_state
from deutschshikhi.gamification.state import AchievementProgress, read_state
from deutschshikhi.models.user.user_model import User
from deutschshikhi.services.achievement_service import apply_counter_updates, validate_counter_updates

logger = logging.getLogger(__name__)

CounterUpdate = Callable[[User, AchievementProgress], Dict[str, int]]


def _track(db: Session, user_id: int, label: str, build_updates: CounterUpdate) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)

    def mutate(user: User) -> List[Dict[str, Any]]:
        state = read_state(user)
        updates = {
            "totalXp": state.xp.total,
            "currentLevel": state.xp.level,
            **build_updates(user, state.achievement_progress),
        }
        return apply_counter_updates(db, user, validate_counter_updates(updates), now)

    try:
        return update_user_state(db, user_id, mutate)
    except (SQLAlchemyError, ConflictError):
        db.rollback()
        logger.exception("Échec du suivi '%s' pour l'utilisateur %s", label, user_id)
        return []


def track_lesson_completion(db: Session, user_id: int) -> List[Dict[str, Any]]:
    return _track(
        db,
        user_id,
        "lesson",
        lambda user, progress: {
            "lessonsCompleted": progress.lessons_completed + 1,
            "longestStreak": read_state(user).streak.longest,
        },
    )


def track_grammar_completion(db: Session, user_id: int) -> List[Dict[str, Any]]:
    return _track(
        db,
        user_id,
        "grammar",
        lambda user, progress: {"grammarCompleted": progress.grammar_completed + 1},
    )


def track_word_learned(db: Session, user_id: int, count: int = 1) -> List[Dict[str, Any]]:
    return _track(
        db,
        user_id,
        "words",
        lambda user, progress: {"wordsLearned": progress.words_learned + max(int(count), 0)},
    )


def track_quiz_completion(db: Session, user_id: int, score: int) -> List[Dict[str, Any]]:
    def build(user: User, progress: AchievementProgress) -> Dict[str, int]:
        updates = {"quizzesCompleted": progress.quizzes_completed + 1}
        if score == 100:
            updates["perfectScores"] = progress.perfect_scores + 1
        return updates

    return _track(db, user_id, "quiz", build)

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deutschshikhi.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from deutschshikhi.crud import content_crud
from deutschshikhi.models.content.lesson_model import Lesson
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.models.user.user_model import User
from deutschshikhi.services import achievement_tracker
from deutschshikhi.services.lesson_unlock_service import is_unlocked
from deutschshikhi.services.settings_service import AppSettingsValues, get_settings

logger = logging.getLogger(__name__)


def validate_score(score: Any) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise InvalidInputError("invalid_score", "Score must be an integer between 0 and 100")
    if score < 0 or score > 100:
        raise InvalidInputError("invalid_score", "Score must be an integer between 0 and 100")
    return score


class ProgressService:
    """Progression de l'utilisateur sur les leçons, exercices, mots et points de grammaire."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def complete_lesson(self, lesson_id: int, score: Any) -> Dict[str, Any]:
        score = validate_score(score)
        lesson = content_crud.get_published_lesson(self.db, lesson_id)
        if lesson is None:
            raise NotFoundError("lesson_not_found", "Lesson not found")

        settings = get_settings(self.db)
        unlock_status = is_unlocked(self.db, self.user.id, lesson, settings)
        if not unlock_status["unlocked"]:
            logger.info(
                "Leçon %s verrouillée pour l'utilisateur %s: %s",
                lesson.id,
                self.user.id,
                unlock_status["reason"],
            )
            raise ForbiddenError("lesson_locked", unlock_status["reason"], unlock_status)

        record, first_pass = self._record_attempt(lesson, score, settings)
        payload = self.serialize_progress(record)

        new_achievements: List[Dict[str, Any]] = []
        if first_pass:
            new_achievements = achievement_tracker.track_lesson_completion(self.db, self.user.id)

        return {
            "progress": payload,
            "firstPass": first_pass,
            "newAchievements": new_achievements,
            "nextLesson": self._next_lesson(lesson, settings),
        }

    def complete_exercise(self, exercise_id: int, score: Any) -> Dict[str, Any]:
        score = validate_score(score)
        if content_crud.get_exercise(self.db, exercise_id) is None:
            raise NotFoundError("exercise_not_found", "Exercise not found")

        settings = get_settings(self.db)
        new_achievements = achievement_tracker.track_quiz_completion(self.db, self.user.id, score)
        return {
            "score": score,
            "passed": score >= settings.min_passing_score,
            "newAchievements": new_achievements,
        }

    def learn_words(self, word_ids: Iterable[int]) -> Dict[str, Any]:
        count = content_crud.count_existing_words(self.db, word_ids)
        if count == 0:
            raise NotFoundError("words_not_found", "No matching words found")

        new_achievements = achievement_tracker.track_word_learned(self.db, self.user.id, count)
        return {"count": count, "newAchievements": new_achievements}

    def complete_grammar(self, topic_id: int) -> Dict[str, Any]:
        if content_crud.get_grammar_topic(self.db, str(topic_id)) is None:
            raise NotFoundError("grammar_not_found", "Grammar topic not found")

        new_achievements = achievement_tracker.track_grammar_completion(self.db, self.user.id)
        return {"newAchievements": new_achievements}

    def get_summary(self) -> Dict[str, Any]:
        records = (
            self.db.query(LessonProgress)
            .filter(LessonProgress.user_id == self.user.id)
            .all()
        )
        passed_lesson_ids = {record.lesson_id for record in records if record.passed}
        total_lessons = content_crud.count_published_lessons(self.db)

        level_progress = []
        for level in content_crud.list_levels(self.db):
            level_lessons = content_crud.list_published_lessons(self.db, level.id)
            completed_in_level = sum(1 for lesson in level_lessons if lesson.id in passed_lesson_ids)
            level_progress.append(
                {
                    "levelId": level.id,
                    "levelCode": level.code,
                    "levelTitle": level.title,
                    "totalLessons": len(level_lessons),
                    "completedLessons": completed_in_level,
                    "percentage": self._percent(completed_in_level, len(level_lessons)),
                }
            )

        average_score = round(sum(record.score for record in records) / len(records)) if records else 0
        recent = sorted(records, key=self._completed_sort_key, reverse=True)[:5]

        return {
            "totalLessons": total_lessons,
            "completedLessons": len(passed_lesson_ids),
            "attemptedLessons": len(records),
            "overallPercentage": self._percent(len(passed_lesson_ids), total_lessons),
            "averageScore": average_score,
            "levelProgress": level_progress,
            "recentProgress": [self.serialize_progress(record) for record in recent],
        }

    def list_completed_lessons(self) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(LessonProgress, Lesson)
            .join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .filter(LessonProgress.user_id == self.user.id)
            .order_by(LessonProgress.completed_at.desc(), LessonProgress.id.desc())
            .all()
        )
        return [
            {
                **self.serialize_progress(record),
                "lesson": {
                    "id": lesson.id,
                    "title": lesson.title,
                    "levelId": lesson.level_id,
                    "order": lesson.order,
                },
            }
            for record, lesson in rows
        ]

    @staticmethod
    def serialize_progress(record: LessonProgress) -> Dict[str, Any]:
        return {
            "id": record.id,
            "lessonId": record.lesson_id,
            "score": record.score,
            "passed": record.passed,
            "attempts": record.attempts,
            "completedAt": record.completed_at,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _record_attempt(
        self,
        lesson: Lesson,
        score: int,
        settings: AppSettingsValues,
    ) -> tuple[LessonProgress, bool]:
        """Upsert du meilleur score; renvoie l'enregistrement et ``True`` au premier succès."""
        for _ in range(2):
            record = self._find_progress(lesson.id)
            self._check_retake_policy(record, settings)

            now = self._utcnow()
            was_passed = bool(record and record.passed)
            if record is None:
                record = LessonProgress(
                    user_id=self.user.id,
                    lesson_id=lesson.id,
                    score=score,
                    passed=score >= settings.min_passing_score,
                    attempts=1,
                    completed_at=now,
                )
                self.db.add(record)
            else:
                best = max(record.score or 0, score)
                record.score = best
                record.passed = was_passed or best >= settings.min_passing_score
                record.attempts = (record.attempts or 0) + 1
                record.completed_at = now

            try:
                self.db.commit()
            except IntegrityError:
                # Insertion concurrente du même couple (utilisateur, leçon): on relit.
                self.db.rollback()
                continue

            self.db.refresh(record)
            return record, record.passed and not was_passed

        raise InvalidInputError("progress_conflict", "Could not save progress, please retry.")

    def _find_progress(self, lesson_id: int) -> Optional[LessonProgress]:
        return (
            self.db.query(LessonProgress)
            .filter(LessonProgress.user_id == self.user.id, LessonProgress.lesson_id == lesson_id)
            .first()
        )

    def _check_retake_policy(self, record: Optional[LessonProgress], settings: AppSettingsValues) -> None:
        if record is None:
            return
        if not settings.allow_retakes:
            raise ForbiddenError("retakes_disabled", "Retakes are not allowed.")
        retakes_used = (record.attempts or 0) - 1
        if settings.max_retakes > 0 and retakes_used >= settings.max_retakes:
            raise ForbiddenError(
                "max_retakes_reached",
                f"Maximum number of retakes ({settings.max_retakes}) reached.",
                {"attempts": record.attempts, "maxRetakes": settings.max_retakes},
            )

    def _next_lesson(self, lesson: Lesson, settings: AppSettingsValues) -> Optional[Dict[str, Any]]:
        following = content_crud.get_published_lesson_by_order(self.db, lesson.level_id, lesson.order + 1)
        if following is None:
            return None
        return {
            "id": following.id,
            "title": following.title,
            "order": following.order,
            "unlockStatus": is_unlocked(self.db, self.user.id, following, settings),
        }

    @staticmethod
    def _percent(part: int, whole: int) -> int:
        return round(part / whole * 100) if whole > 0 else 0

    @staticmethod
    def _completed_sort_key(record: LessonProgress) -> datetime:
        completed = record.completed_at
        if completed is None:
            return datetime.min.replace(tzinfo=timezone.utc)
        if completed.tzinfo is None:
            return completed.replace(tzinfo=timezone.utc)
        return completed

    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)

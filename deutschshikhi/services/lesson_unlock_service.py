"""
Déverrouillage séquentiel des leçons.

Une leçon dépend uniquement de la leçon publiée du même niveau dont
``order`` vaut ``order - 1``. Si cette leçon n'existe pas, la leçon est
ouverte.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from deutschshikhi.crud import content_crud
from deutschshikhi.models.content.lesson_model import Lesson
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.services.settings_service import AppSettingsValues, get_settings


def _unlocked(reason: str) -> Dict[str, Any]:
    return {"unlocked": True, "reason": reason}


def _lesson_ref(lesson: Lesson) -> Dict[str, Any]:
    return {"id": lesson.id, "title": lesson.title, "order": lesson.order}


def evaluate_unlock(
    lesson: Lesson,
    previous: Optional[Lesson],
    previous_progress: Optional[LessonProgress],
    settings: AppSettingsValues,
) -> Dict[str, Any]:
    """Décision pure à partir de la leçon précédente et de sa progression."""
    if not settings.require_sequential_lessons:
        return _unlocked("Sequential lessons are disabled.")

    if lesson.order == 1:
        return _unlocked("First lesson of the level.")

    if previous is None:
        return _unlocked("No previous lesson.")

    if previous_progress is None:
        return {
            "unlocked": False,
            "reason": f'Complete "{previous.title}" first.',
            "requiredLesson": _lesson_ref(previous),
        }

    if not previous_progress.passed:
        return {
            "unlocked": False,
            "reason": (
                f"Score at least {settings.min_passing_score}% on \"{previous.title}\" "
                f"to unlock this lesson (current best: {previous_progress.score}%)."
            ),
            "requiredLesson": _lesson_ref(previous),
            "currentScore": previous_progress.score,
            "requiredScore": settings.min_passing_score,
        }

    return _unlocked("Previous lesson passed.")


def _progress_for(db: Session, user_id: int, lesson_id: int) -> Optional[LessonProgress]:
    return (
        db.query(LessonProgress)
        .filter(LessonProgress.user_id == user_id, LessonProgress.lesson_id == lesson_id)
        .first()
    )


def is_unlocked(
    db: Session,
    user_id: int,
    lesson: Lesson,
    settings: Optional[AppSettingsValues] = None,
) -> Dict[str, Any]:
    settings = settings or get_settings(db)
    if not settings.require_sequential_lessons or lesson.order == 1:
        return evaluate_unlock(lesson, None, None, settings)

    previous = content_crud.get_published_lesson_by_order(db, lesson.level_id, lesson.order - 1)
    previous_progress = _progress_for(db, user_id, previous.id) if previous is not None else None
    return evaluate_unlock(lesson, previous, previous_progress, settings)


def annotate_lessons(
    db: Session,
    user_id: Optional[int],
    lessons: Iterable[Lesson],
    settings: Optional[AppSettingsValues] = None,
) -> List[Dict[str, Any]]:
    """Statut de déverrouillage de chaque leçon d'un niveau (une requête de progression)."""
    lessons = list(lessons)
    settings = settings or get_settings(db)

    progress_by_lesson: Mapping[int, LessonProgress] = {}
    if user_id is not None and lessons:
        rows = (
            db.query(LessonProgress)
            .filter(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id.in_([lesson.id for lesson in lessons]),
            )
            .all()
        )
        progress_by_lesson = {row.lesson_id: row for row in rows}

    by_order: Dict[int, Lesson] = {}
    for lesson in lessons:
        by_order.setdefault(lesson.order, lesson)

    annotated: List[Dict[str, Any]] = []
    for lesson in lessons:
        previous = by_order.get(lesson.order - 1)
        previous_progress = progress_by_lesson.get(previous.id) if previous is not None else None
        status = evaluate_unlock(lesson, previous, previous_progress, settings)

        own = progress_by_lesson.get(lesson.id)
        annotated.append(
            {
                "lesson": lesson,
                "unlockStatus": status,
                "progress": own,
            }
        )
    return annotated

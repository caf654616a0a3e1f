from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db, get_optional_user
from deutschshikhi.core.errors import DomainError
from deutschshikhi.crud import content_crud
from deutschshikhi.models.content.lesson_model import Lesson
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.content_schema import ExerciseRead, LessonDetail, WordRead
from deutschshikhi.schemas.progress_schema import ScoreIn
from deutschshikhi.services.lesson_unlock_service import is_unlocked
from deutschshikhi.services.progress_service import ProgressService

router = APIRouter()


def _get_lesson_or_404(db: Session, lesson_id: int) -> Lesson:
    lesson = content_crud.get_published_lesson(db, lesson_id)
    if lesson is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found.")
    return lesson


@router.get("/{lesson_id}")
def read_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    lesson = _get_lesson_or_404(db, lesson_id)
    data = dump(LessonDetail.model_validate(lesson))
    if current_user is not None:
        data["unlockStatus"] = is_unlocked(db, current_user.id, lesson)
    return ok(data)


@router.get("/{lesson_id}/words")
def list_lesson_words(lesson_id: int, db: Session = Depends(get_db)):
    lesson = _get_lesson_or_404(db, lesson_id)
    words = content_crud.list_lesson_words(db, lesson.id)
    return ok([dump(WordRead.model_validate(word)) for word in words], count=len(words))


@router.get("/{lesson_id}/exercises")
def list_lesson_exercises(lesson_id: int, db: Session = Depends(get_db)):
    lesson = _get_lesson_or_404(db, lesson_id)
    exercises = content_crud.list_lesson_exercises(db, lesson.id)
    return ok([dump(ExerciseRead.model_validate(exercise)) for exercise in exercises], count=len(exercises))


@router.get("/{lesson_id}/unlock-status")
def read_unlock_status(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = _get_lesson_or_404(db, lesson_id)
    return ok(is_unlocked(db, current_user.id, lesson))


@router.post("/{lesson_id}/complete", summary="Enregistre un passage de leçon (meilleur score conservé)")
def complete_lesson(
    lesson_id: int,
    payload: ScoreIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        result = service.complete_lesson(lesson_id, payload.score)
    except DomainError as exc:
        raise exc.to_http() from exc

    message = "Lesson passed!" if result["progress"]["passed"] else "Progress saved."
    return ok(result, message=message)

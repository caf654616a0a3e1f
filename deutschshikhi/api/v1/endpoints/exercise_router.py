from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.core.errors import DomainError
from deutschshikhi.crud import content_crud
from deutschshikhi.models.content.exercise_model import ExerciseType
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok, page_meta
from deutschshikhi.schemas.content_schema import ExerciseRead
from deutschshikhi.schemas.progress_schema import CheckAnswerIn, ScoreIn
from deutschshikhi.services.answer_checker import check_answer
from deutschshikhi.services.progress_service import ProgressService
from deutschshikhi.services.settings_service import get_settings

router = APIRouter()

_KNOWN_TYPES = {item.value for item in ExerciseType}


@router.get("/", summary="Exercices paginés, sans les réponses")
def list_exercises(
    lesson: Optional[int] = None,
    type: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    # Un type inconnu est ignoré plutôt que refusé.
    exercise_type = type if type in _KNOWN_TYPES else None
    exercises, total = content_crud.list_exercises(
        db, lesson_id=lesson, type=exercise_type, page=page, limit=limit
    )
    return ok(
        [dump(ExerciseRead.model_validate(exercise)) for exercise in exercises],
        count=len(exercises),
        **page_meta(total, page, limit),
    )


@router.get("/{exercise_id}")
def read_exercise(exercise_id: int, db: Session = Depends(get_db)):
    exercise = content_crud.get_exercise(db, exercise_id)
    if exercise is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found.")
    return ok(dump(ExerciseRead.model_validate(exercise)))


@router.post("/{exercise_id}/check", summary="Corrige une réponse sans rien enregistrer")
def check_exercise_answer(
    exercise_id: int,
    payload: CheckAnswerIn,
    db: Session = Depends(get_db),
):
    exercise = content_crud.get_exercise(db, exercise_id)
    if exercise is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exercise not found.")

    settings = get_settings(db)
    try:
        result = check_answer(exercise, payload.answer, show_correct_answers=settings.show_correct_answers)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(result)


@router.post("/{exercise_id}/complete")
def complete_exercise(
    exercise_id: int,
    payload: ScoreIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProgressService(db=db, user=current_user)
    try:
        result = service.complete_exercise(exercise_id, payload.score)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(result, message="Exercise completed.")

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_db, get_optional_user
from deutschshikhi.crud import content_crud
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.content_schema import LessonRead, LevelRead
from deutschshikhi.services.lesson_unlock_service import annotate_lessons
from deutschshikhi.services.progress_service import ProgressService

router = APIRouter()


def _get_level_or_404(db: Session, level_id: int):
    level = content_crud.get_level(db, level_id)
    if level is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Level not found.")
    return level


@router.get("/", summary="Niveaux triés par ordre")
def list_levels(db: Session = Depends(get_db)):
    levels = content_crud.list_levels(db)
    return ok([dump(LevelRead.model_validate(level)) for level in levels], count=len(levels))


@router.get("/{level_id}")
def read_level(level_id: int, db: Session = Depends(get_db)):
    level = _get_level_or_404(db, level_id)
    lessons = content_crud.list_published_lessons(db, level.id)
    return ok({**dump(LevelRead.model_validate(level)), "lessonCount": len(lessons)})


@router.get("/{level_id}/lessons", summary="Leçons publiées, avec statut de déverrouillage si connecté")
def list_level_lessons(
    level_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    level = _get_level_or_404(db, level_id)
    lessons = content_crud.list_published_lessons(db, level.id)

    if current_user is None:
        data = [dump(LessonRead.model_validate(lesson)) for lesson in lessons]
        return ok(data, count=len(data))

    data = []
    for item in annotate_lessons(db, current_user.id, lessons):
        record = item["progress"]
        data.append(
            {
                **dump(LessonRead.model_validate(item["lesson"])),
                "unlockStatus": item["unlockStatus"],
                "progress": ProgressService.serialize_progress(record) if record is not None else None,
            }
        )
    return ok(data, count=len(data))

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import ok
from deutschshikhi.services.progress_service import ProgressService

router = APIRouter()


@router.get("/me", summary="Résumé de progression de l'utilisateur")
def read_progress_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok(ProgressService(db=db, user=current_user).get_summary())


@router.get("/me/lessons", summary="Leçons tentées, les plus récentes d'abord")
def list_completed_lessons(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = ProgressService(db=db, user=current_user).list_completed_lessons()
    return ok(data, count=len(data))

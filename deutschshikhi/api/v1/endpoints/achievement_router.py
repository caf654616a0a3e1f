from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.core.errors import DomainError
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import ok
from deutschshikhi.services.achievement_service import AchievementService, list_catalogue

router = APIRouter()


@router.get("/", summary="Catalogue complet des succès")
def list_achievements():
    return ok(list_catalogue())


@router.get("/me")
def read_my_achievements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok(AchievementService(db=db, user=current_user).get_user_achievements())


@router.post("/check", summary="Débloque les succès atteints")
def check_achievements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        newly_unlocked = AchievementService(db=db, user=current_user).check_and_unlock()
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok({"newlyUnlocked": newly_unlocked, "count": len(newly_unlocked)})


@router.post("/claim/{achievement_id}")
def claim_achievement_reward(
    achievement_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        result = AchievementService(db=db, user=current_user).claim_reward(achievement_id)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(result, message="Reward claimed successfully")

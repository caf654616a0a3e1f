from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db, get_optional_user
from deutschshikhi.core.errors import DomainError
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import ok
from deutschshikhi.services.leaderboard_service import LeaderboardService

router = APIRouter()


@router.get("/", summary="Classement par XP (rang de l'utilisateur si connecté)")
def read_leaderboard(
    period: str = "all",
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    try:
        data = LeaderboardService(db).get_leaderboard(period, limit, current_user)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(data)


@router.get("/me")
def read_my_rank(
    period: str = "all",
    range_size: Optional[int] = Query(None, alias="range"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        data = LeaderboardService(db).get_neighbours(current_user, period, range_size)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(data)


@router.get("/stats")
def read_leaderboard_stats(db: Session = Depends(get_db)):
    return ok(LeaderboardService(db).get_stats())


@router.get("/lessons", summary="Classement par leçons réussies puis score moyen")
def read_lessons_leaderboard(limit: Optional[int] = None, db: Session = Depends(get_db)):
    return ok(LeaderboardService(db).get_lessons_leaderboard(limit))

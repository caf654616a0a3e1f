from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.core.errors import DomainError
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import ok
from deutschshikhi.schemas.gamification_schema import AwardXPIn, DailyGoalIn
from deutschshikhi.services.leaderboard_service import LeaderboardService
from deutschshikhi.services.xp_service import XPService, reward_table

router = APIRouter()


@router.get("/status", summary="XP, niveau, série et objectif du jour recalculés")
def read_xp_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok(XPService(db=db, user=current_user).status())


@router.post("/award")
def award_xp(
    payload: AwardXPIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = XPService(db=db, user=current_user)
    try:
        result = service.award(payload.activity_type, payload.options)
    except DomainError as exc:
        raise exc.to_http() from exc

    data = result.as_dict()
    data["currentStatus"] = service.status()
    return ok(data, message="XP awarded successfully!")


@router.patch("/daily-goal")
def update_daily_goal(
    payload: DailyGoalIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = XPService(db=db, user=current_user)
    try:
        goal = service.set_daily_goal(payload.target)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok({"target": goal.target}, message="Daily goal updated!")


@router.get("/rewards", summary="Barème d'XP")
def read_rewards():
    return ok(reward_table())


@router.get("/leaderboard")
def read_xp_leaderboard(
    type: str = "total",
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        data = LeaderboardService(db).get_xp_leaderboard(type, limit, current_user)
    except DomainError as exc:
        raise exc.to_http() from exc
    return ok(data)

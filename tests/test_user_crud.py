from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from deutschshikhi.core.errors import ConflictError, NotFoundError
from deutschshikhi.crud.user_crud import update_user_state
from deutschshikhi.gamification.state import AchievementProgress
from deutschshikhi.models.user.achievement_model import UserAchievement
from deutschshikhi.models.user.user_model import User
from deutschshikhi.services.achievement_service import unlock_crossed
from tests.utils import create_user


def _add_xp_elsewhere(engine, user_id: int, amount: int) -> None:
    with Session(bind=engine) as other:
        user = other.get(User, user_id)
        user.xp_points = (user.xp_points or 0) + amount
        other.commit()


def test_stale_write_is_replayed_on_a_fresh_read(engine, db_session):
    user = create_user(db_session)
    calls = []

    def mutate(current: User) -> int:
        calls.append(current.xp_points)
        current.xp_points = (current.xp_points or 0) + 10
        if len(calls) == 1:
            _add_xp_elsewhere(engine, user.id, 5)
        return current.xp_points

    result = update_user_state(db_session, user.id, mutate)

    assert calls == [0, 5]
    assert result == 15
    db_session.expire_all()
    assert db_session.get(User, user.id).xp_points == 15


def test_conflict_after_exhausting_retries(engine, db_session):
    user = create_user(db_session)
    calls = []

    def mutate(current: User) -> None:
        calls.append(1)
        current.xp_points = (current.xp_points or 0) + 10
        _add_xp_elsewhere(engine, user.id, 1)

    with pytest.raises(ConflictError) as exc:
        update_user_state(db_session, user.id, mutate, max_attempts=2)

    assert exc.value.code == "concurrent_update"
    assert len(calls) == 2
    db_session.expire_all()
    # Seules les écritures concurrentes ont abouti.
    assert db_session.get(User, user.id).xp_points == 2


def test_duplicate_achievement_insert_is_retried(engine, db_session):
    user = create_user(db_session)
    progress = AchievementProgress(lessons_completed=10)
    now = datetime.now(timezone.utc)
    results = []

    def mutate(current: User):
        newly = unlock_crossed(db_session, current, progress, now)
        if not results:
            with Session(bind=engine) as other:
                other.add(UserAchievement(user_id=user.id, achievement_id="beginner", reward=0))
                other.commit()
        results.append([item["id"] for item in newly])
        return newly

    assert update_user_state(db_session, user.id, mutate) == []
    assert results == [["beginner"], []]
    rows = db_session.query(UserAchievement).filter_by(user_id=user.id).all()
    assert [row.achievement_id for row in rows] == ["beginner"]


def test_missing_user_is_not_retried(db_session):
    with pytest.raises(NotFoundError):
        update_user_state(db_session, 9999, lambda current: None)

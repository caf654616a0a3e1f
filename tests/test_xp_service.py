from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from deutschshikhi.core.errors import InvalidInputError
from deutschshikhi.gamification.state import (
    AchievementProgress,
    DailyGoalState,
    GamificationState,
    StreakState,
    XPState,
    read_state,
)
from deutschshikhi.models.user.achievement_model import UserAchievement
from deutschshikhi.services.xp_service import XPService, award_xp, get_xp_status
from tests.utils import create_user

TODAY = date(2024, 3, 15)


def build_state(
    total: int = 0,
    streak: StreakState | None = None,
    daily_goal: DailyGoalState | None = None,
) -> GamificationState:
    return GamificationState(
        xp=XPState.from_total(total),
        streak=streak or StreakState(),
        daily_goal=daily_goal or DailyGoalState(),
        achievement_progress=AchievementProgress(),
    )


def test_lesson_award_on_fresh_state():
    result = award_xp(build_state(), "COMPLETE_LESSON", today=TODAY)

    assert result.xp_earned == 20
    assert [reward.type for reward in result.rewards] == ["COMPLETE_LESSON"]
    assert result.xp.total == 20
    assert result.leveled_up is False
    assert result.new_level is None
    assert result.streak_updated is True
    assert result.streak.current == 1
    assert result.daily_goal.today_xp == 20
    assert result.daily_goal.last_reset_date == TODAY


@pytest.mark.parametrize(
    "score, reward_type, xp",
    [(100, "QUIZ_PERFECT", 30), (85, "QUIZ_GOOD", 20), (70, "QUIZ_GOOD", 20), (40, "QUIZ_PASS", 10)],
)
def test_quiz_rewards_follow_score(score, reward_type, xp):
    state = build_state(streak=StreakState(current=1, longest=1, last_activity_date=TODAY))
    result = award_xp(state, "COMPLETE_QUIZ", {"score": score}, today=TODAY)
    assert result.rewards[0].type == reward_type
    assert result.xp_earned == xp


def test_review_word_depends_on_correctness():
    state = build_state(streak=StreakState(current=1, longest=1, last_activity_date=TODAY))
    assert award_xp(state, "REVIEW_WORD", {"correct": True}, today=TODAY).xp_earned == 2
    assert award_xp(state, "REVIEW_WORD", {"correct": False}, today=TODAY).xp_earned == 1


def test_invalid_activity_type_is_rejected():
    with pytest.raises(InvalidInputError) as exc:
        award_xp(build_state(), "WATCH_VIDEO", today=TODAY)
    assert exc.value.code == "invalid_activity_type"


def test_daily_goal_bonus_on_crossing_only():
    goal = DailyGoalState(target=50, today_xp=40, last_reset_date=TODAY)
    state = build_state(
        total=40,
        streak=StreakState(current=1, longest=1, last_activity_date=TODAY),
        daily_goal=goal,
    )

    result = award_xp(state, "COMPLETE_LESSON", today=TODAY)
    assert result.xp_earned == 30
    assert [reward.type for reward in result.rewards] == ["COMPLETE_LESSON", "DAILY_GOAL_BONUS"]
    # Le bonus ne compte pas dans l'XP du jour.
    assert result.daily_goal.today_xp == 60

    state = build_state(total=70, streak=state.streak, daily_goal=result.daily_goal)
    again = award_xp(state, "LEARN_WORD", today=TODAY)
    assert again.xp_earned == 5
    assert "DAILY_GOAL_BONUS" not in [reward.type for reward in again.rewards]


def test_stale_daily_goal_resets_before_accumulating():
    goal = DailyGoalState(target=50, today_xp=45, last_reset_date=TODAY - timedelta(days=1))
    result = award_xp(build_state(daily_goal=goal), "LEARN_WORD", today=TODAY)
    assert result.daily_goal.today_xp == 5
    assert result.xp_earned == 5


def test_streak_milestone_bonus_and_level_up():
    state = build_state(
        total=95,
        streak=StreakState(current=6, longest=6, last_activity_date=TODAY - timedelta(days=1)),
    )
    result = award_xp(state, "COMPLETE_QUIZ", {"score": 100}, today=TODAY)

    assert [reward.type for reward in result.rewards] == ["QUIZ_PERFECT", "STREAK_7_DAYS", "DAILY_GOAL_BONUS"]
    assert result.xp_earned == 30 + 50 + 10
    assert result.xp.total == 185
    assert result.leveled_up is True
    assert result.new_level == 2
    assert result.streak.current == 7


def test_broken_streak_is_reported():
    state = build_state(streak=StreakState(current=4, longest=4, last_activity_date=TODAY - timedelta(days=5)))
    result = award_xp(state, "LEARN_WORD", today=TODAY)
    assert result.streak_broken is True
    assert result.streak.current == 1
    assert result.streak.longest == 4


def test_status_is_recomputed():
    state = build_state(
        total=175,
        streak=StreakState(current=3, longest=5, last_activity_date=TODAY - timedelta(days=1)),
        daily_goal=DailyGoalState(target=50, today_xp=60, last_reset_date=TODAY),
    )
    status = get_xp_status(state, today=TODAY)

    assert status["xp"]["level"] == 2
    assert status["xp"]["currentLevelXp"] == 75
    assert status["xp"]["totalXpForNextLevel"] == 250
    assert status["xp"]["levelProgress"] == 50.0
    assert status["streak"]["isActive"] is True
    assert status["streak"]["willExpireToday"] is True
    assert status["dailyGoal"]["progress"] == 100
    assert status["dailyGoal"]["completed"] is True


def test_status_after_a_missed_day():
    state = build_state(
        streak=StreakState(current=3, longest=3, last_activity_date=TODAY - timedelta(days=2)),
        daily_goal=DailyGoalState(target=20, today_xp=15, last_reset_date=TODAY - timedelta(days=2)),
    )
    status = get_xp_status(state, today=TODAY)
    assert status["streak"]["isActive"] is False
    assert status["streak"]["willExpireToday"] is False
    assert status["dailyGoal"]["todayXp"] == 0
    assert status["dailyGoal"]["completed"] is False


def test_service_award_persists_everything_in_one_go(db_session):
    user = create_user(db_session, xp_points=990)
    service = XPService(db=db_session, user=user)

    result = service.award("COMPLETE_LESSON")

    db_session.expire_all()
    state = read_state(user)
    today = datetime.now(timezone.utc).date()
    assert state.xp.total == 990 + result.xp_earned
    assert user.level == state.xp.level
    assert state.streak.current == 1
    assert state.streak.last_activity_date == today
    assert state.daily_goal.last_reset_date == today
    assert state.achievement_progress.total_xp == state.xp.total
    assert state.achievement_progress.current_level == state.xp.level

    unlocked = {entry.achievement_id for entry in db_session.query(UserAchievement).filter_by(user_id=user.id)}
    assert "bronze_learner" in unlocked
    assert "bronze_learner" in {item["id"] for item in result.new_achievements}


def test_service_award_same_day_does_not_extend_streak(db_session):
    user = create_user(db_session)
    service = XPService(db=db_session, user=user)

    service.award("LEARN_WORD")
    second = service.award("LEARN_WORD")

    assert second.streak_updated is False
    assert second.streak.current == 1


def test_set_daily_goal(db_session):
    user = create_user(db_session)
    service = XPService(db=db_session, user=user)

    goal = service.set_daily_goal(20)
    assert goal.target == 20
    db_session.expire_all()
    assert user.daily_goal_target == 20

    for invalid in (15, 0, True):
        with pytest.raises(InvalidInputError):
            service.set_daily_goal(invalid)


def test_daily_goal_bonus_granted_once_per_day():
    state = build_state(
        total=45,
        streak=StreakState(current=1, longest=1, last_activity_date=TODAY),
        daily_goal=DailyGoalState(target=50, today_xp=45, last_reset_date=TODAY),
    )
    first = award_xp(state, "COMPLETE_QUIZ", {"score": 80}, today=TODAY)
    assert first.xp_earned == 30
    assert first.daily_goal.today_xp == 65

    state = build_state(total=first.xp.total, streak=first.streak, daily_goal=first.daily_goal)
    second = award_xp(state, "COMPLETE_QUIZ", {"score": 80}, today=TODAY)
    assert second.xp_earned == 20

    tomorrow = TODAY + timedelta(days=1)
    state = build_state(
        total=second.xp.total,
        streak=second.streak,
        daily_goal=DailyGoalState(target=50, today_xp=45, last_reset_date=tomorrow),
    )
    third = award_xp(state, "COMPLETE_QUIZ", {"score": 80}, today=tomorrow)
    assert "DAILY_GOAL_BONUS" in [reward.type for reward in third.rewards]


@pytest.mark.parametrize("score", ["90", True, -5, 100.5, [90]])
def test_quiz_score_must_be_a_percentage(score):
    with pytest.raises(InvalidInputError) as exc:
        award_xp(build_state(), "COMPLETE_QUIZ", {"score": score}, today=TODAY)
    assert exc.value.code == "invalid_score"


def test_fractional_and_missing_quiz_scores():
    state = build_state(streak=StreakState(current=1, longest=1, last_activity_date=TODAY))
    assert award_xp(state, "COMPLETE_QUIZ", {"score": 87.5}, today=TODAY).rewards[0].type == "QUIZ_GOOD"
    assert award_xp(state, "COMPLETE_QUIZ", {}, today=TODAY).rewards[0].type == "QUIZ_PASS"


def test_service_award_rejects_bad_score_without_writing(db_session):
    user = create_user(db_session)
    service = XPService(db=db_session, user=user)

    with pytest.raises(InvalidInputError):
        service.award("COMPLETE_QUIZ", {"score": "90"})

    db_session.expire_all()
    assert read_state(user).xp.total == 0

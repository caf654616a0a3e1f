from datetime import date, timedelta

from deutschshikhi.gamification.streaks import is_streak_active, update_streak

TODAY = date(2024, 3, 15)


def test_first_activity_starts_a_streak():
    result = update_streak(0, 0, None, TODAY)
    assert result.updated is True
    assert result.broken is False
    assert result.current == 1
    assert result.longest == 1
    assert result.last_activity_date == TODAY


def test_same_day_activity_changes_nothing():
    result = update_streak(4, 9, TODAY, TODAY)
    assert result.updated is False
    assert (result.current, result.longest) == (4, 9)
    assert result.bonuses == []


def test_consecutive_day_extends_streak():
    result = update_streak(2, 2, TODAY - timedelta(days=1), TODAY)
    assert result.updated is True
    assert result.current == 3
    assert result.longest == 3


def test_gap_breaks_streak_but_keeps_longest():
    result = update_streak(5, 12, TODAY - timedelta(days=3), TODAY)
    assert result.broken is True
    assert result.current == 1
    assert result.longest == 12


def test_seventh_day_grants_milestone_bonus():
    result = update_streak(6, 6, TODAY - timedelta(days=1), TODAY)
    assert result.current == 7
    assert len(result.bonuses) == 1
    bonus = result.bonuses[0]
    assert bonus.xp == 50
    assert bonus.type == "STREAK_7_DAYS"
    assert bonus.message == "7-Day Streak!"


def test_non_milestone_days_have_no_bonus():
    result = update_streak(7, 7, TODAY - timedelta(days=1), TODAY)
    assert result.current == 8
    assert result.bonuses == []


def test_streak_activity_window():
    assert is_streak_active(None, TODAY) is False
    assert is_streak_active(TODAY, TODAY) is True
    assert is_streak_active(TODAY - timedelta(days=1), TODAY) is True
    assert is_streak_active(TODAY - timedelta(days=2), TODAY) is False


def test_long_streak_broken_after_three_days():
    result = update_streak(10, 10, TODAY - timedelta(days=3), TODAY)
    assert (result.current, result.broken, result.longest) == (1, True, 10)

from __future__ import annotations

import pytest

from deutschshikhi.core.errors import ForbiddenError, InvalidInputError, NotFoundError
from deutschshikhi.gamification.state import read_achievement_progress
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.services import settings_service
from deutschshikhi.services.progress_service import ProgressService
from tests.utils import (
    create_exercise,
    create_grammar_topic,
    create_lesson_chain,
    create_user,
    create_word,
)


@pytest.fixture()
def learner(db_session):
    return create_user(db_session, name="Lerner")


@pytest.fixture()
def chain(db_session):
    return create_lesson_chain(db_session)


def test_best_score_is_kept_and_attempts_counted(db_session, learner, chain):
    _, (first, _, _) = chain
    service = ProgressService(db=db_session, user=learner)

    result = service.complete_lesson(first.id, 50)
    assert result["progress"]["score"] == 50
    assert result["progress"]["passed"] is False
    assert result["firstPass"] is False

    result = service.complete_lesson(first.id, 80)
    assert result["progress"]["score"] == 80
    assert result["progress"]["passed"] is True
    assert result["progress"]["attempts"] == 2
    assert result["firstPass"] is True

    result = service.complete_lesson(first.id, 30)
    assert result["progress"]["score"] == 80
    assert result["progress"]["passed"] is True
    assert result["progress"]["attempts"] == 3
    assert result["firstPass"] is False

    assert db_session.query(LessonProgress).filter_by(user_id=learner.id).count() == 1


def test_first_pass_tracks_lesson_completion_once(db_session, learner, chain):
    _, (first, _, _) = chain
    service = ProgressService(db=db_session, user=learner)

    service.complete_lesson(first.id, 90)
    service.complete_lesson(first.id, 100)

    db_session.expire_all()
    assert read_achievement_progress(learner).lessons_completed == 1


def test_passing_reports_next_lesson_unlocked(db_session, learner, chain):
    _, (first, second, _) = chain
    result = ProgressService(db=db_session, user=learner).complete_lesson(first.id, 75)

    assert result["nextLesson"]["id"] == second.id
    assert result["nextLesson"]["unlockStatus"]["unlocked"] is True


def test_last_lesson_has_no_next_lesson(db_session, learner, chain):
    _, lessons = chain
    service = ProgressService(db=db_session, user=learner)
    for lesson in lessons:
        result = service.complete_lesson(lesson.id, 100)
    assert result["nextLesson"] is None


def test_locked_lesson_is_refused(db_session, learner, chain):
    _, (first, second, _) = chain

    with pytest.raises(ForbiddenError) as exc:
        ProgressService(db=db_session, user=learner).complete_lesson(second.id, 100)

    assert exc.value.status_code == 403
    assert exc.value.code == "lesson_locked"
    assert exc.value.data["requiredLesson"]["id"] == first.id
    assert db_session.query(LessonProgress).count() == 0


def test_unknown_lesson_is_not_found(db_session, learner):
    with pytest.raises(NotFoundError):
        ProgressService(db=db_session, user=learner).complete_lesson(999, 80)


@pytest.mark.parametrize("score", [-1, 101, True, 80.5, "80", None])
def test_invalid_scores_are_rejected(db_session, learner, chain, score):
    _, (first, _, _) = chain
    with pytest.raises(InvalidInputError):
        ProgressService(db=db_session, user=learner).complete_lesson(first.id, score)


def test_retakes_can_be_disabled(db_session, learner, chain):
    _, (first, _, _) = chain
    settings_service.update_settings(db_session, {"allow_retakes": False})
    service = ProgressService(db=db_session, user=learner)

    service.complete_lesson(first.id, 40)
    with pytest.raises(ForbiddenError) as exc:
        service.complete_lesson(first.id, 90)
    assert exc.value.code == "retakes_disabled"


def test_max_retakes_is_enforced(db_session, learner, chain):
    _, (first, _, _) = chain
    settings_service.update_settings(db_session, {"max_retakes": 1})
    service = ProgressService(db=db_session, user=learner)

    service.complete_lesson(first.id, 40)
    service.complete_lesson(first.id, 50)
    with pytest.raises(ForbiddenError) as exc:
        service.complete_lesson(first.id, 90)
    assert exc.value.code == "max_retakes_reached"


def test_passing_threshold_follows_settings(db_session, learner, chain):
    _, (first, _, _) = chain
    settings_service.update_settings(db_session, {"min_passing_score": 90})

    result = ProgressService(db=db_session, user=learner).complete_lesson(first.id, 85)
    assert result["progress"]["passed"] is False


def test_complete_exercise_tracks_quizzes(db_session, learner, chain):
    _, (first, _, _) = chain
    exercise = create_exercise(db_session, first)
    service = ProgressService(db=db_session, user=learner)

    result = service.complete_exercise(exercise.id, 100)
    assert result["passed"] is True
    assert [item["id"] for item in result["newAchievements"]] == ["first_perfect"]

    result = service.complete_exercise(exercise.id, 20)
    assert result["passed"] is False

    with pytest.raises(NotFoundError):
        service.complete_exercise(12345, 50)


def test_learn_words_counts_distinct_existing_words(db_session, learner):
    words = [create_word(db_session, german=f"Wort {index}") for index in range(2)]
    service = ProgressService(db=db_session, user=learner)

    result = service.learn_words([words[0].id, words[0].id, words[1].id, 999])
    assert result["count"] == 2
    db_session.expire_all()
    assert read_achievement_progress(learner).words_learned == 2

    with pytest.raises(NotFoundError):
        service.learn_words([998, 999])


def test_complete_grammar(db_session, learner):
    topic = create_grammar_topic(db_session)
    service = ProgressService(db=db_session, user=learner)

    service.complete_grammar(topic.id)
    db_session.expire_all()
    assert read_achievement_progress(learner).grammar_completed == 1

    with pytest.raises(NotFoundError):
        service.complete_grammar(topic.id + 100)


def test_summary_counts_passed_lessons(db_session, learner, chain):
    _, (first, second, _) = chain
    service = ProgressService(db=db_session, user=learner)
    service.complete_lesson(first.id, 80)
    service.complete_lesson(second.id, 40)

    summary = service.get_summary()
    assert summary["totalLessons"] == 3
    assert summary["completedLessons"] == 1
    assert summary["attemptedLessons"] == 2
    assert summary["overallPercentage"] == 33
    assert summary["averageScore"] == 60
    assert summary["levelProgress"][0]["completedLessons"] == 1
    assert len(summary["recentProgress"]) == 2

    lessons = service.list_completed_lessons()
    assert {item["lesson"]["id"] for item in lessons} == {first.id, second.id}

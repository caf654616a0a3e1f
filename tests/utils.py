"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count

from deutschshikhi.core.security import create_id_token
from deutschshikhi.models.content.exercise_model import Exercise
from deutschshikhi.models.content.grammar_model import GrammarTopic
from deutschshikhi.models.content.lesson_model import ContentStatus, Lesson
from deutschshikhi.models.content.level_model import Level
from deutschshikhi.models.content.word_model import Word
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.models.user.user_model import User, UserRole

_sequence = count(1)


def create_user(db, **kwargs) -> User:
    index = next(_sequence)
    defaults = {
        "auth_uid": f"uid-{index}",
        "email": f"user{index}@example.com",
        "name": f"User {index}",
        "role": UserRole.USER,
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_level(db, code: str = "A1", **kwargs) -> Level:
    defaults = {"title": f"Level {code}", "order": 1}
    defaults.update(kwargs)
    level = Level(code=code, **defaults)
    db.add(level)
    db.commit()
    db.refresh(level)
    return level


def create_lesson(db, level: Level, order: int, **kwargs) -> Lesson:
    defaults = {
        "title": f"Lektion {order}",
        "status": ContentStatus.PUBLISHED,
        "content": {"blocks": []},
    }
    defaults.update(kwargs)
    lesson = Lesson(level_id=level.id, order=order, **defaults)
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def create_lesson_chain(db, size: int = 3, code: str = "A1") -> tuple[Level, list[Lesson]]:
    level = create_level(db, code=code)
    lessons = [create_lesson(db, level, order) for order in range(1, size + 1)]
    return level, lessons


def create_word(db, lesson: Lesson | None = None, german: str = "der Morgen", **kwargs) -> Word:
    defaults = {"meaning": "morning"}
    defaults.update(kwargs)
    word = Word(lesson_id=lesson.id if lesson else None, german=german, **defaults)
    db.add(word)
    db.commit()
    db.refresh(word)
    return word


def create_exercise(db, lesson: Lesson, type: str = "fill", answer_key="Morgen", **kwargs) -> Exercise:
    defaults = {
        "question": "Guten ___!",
        "options": None,
        "explanation": "'Guten Morgen' means good morning.",
        "order": 1,
    }
    defaults.update(kwargs)
    exercise = Exercise(lesson_id=lesson.id, type=type, answer_key=answer_key, **defaults)
    db.add(exercise)
    db.commit()
    db.refresh(exercise)
    return exercise


def create_grammar_topic(db, slug: str = "artikel", **kwargs) -> GrammarTopic:
    defaults = {
        "title": "Bestimmte Artikel",
        "content": "der, die, das",
        "status": ContentStatus.PUBLISHED,
    }
    defaults.update(kwargs)
    topic = GrammarTopic(slug=slug, **defaults)
    db.add(topic)
    db.commit()
    db.refresh(topic)
    return topic


def create_progress(db, user: User, lesson: Lesson, score: int, passed: bool | None = None) -> LessonProgress:
    record = LessonProgress(
        user_id=user.id,
        lesson_id=lesson.id,
        score=score,
        passed=score >= 70 if passed is None else passed,
        attempts=1,
        completed_at=datetime.now(timezone.utc),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def auth_headers(user: User | None = None, uid: str | None = None, **claims) -> dict[str, str]:
    subject = uid or (user.auth_uid if user is not None else "uid-anonymous")
    token = create_id_token(subject, **claims)
    return {"Authorization": f"Bearer {token}"}

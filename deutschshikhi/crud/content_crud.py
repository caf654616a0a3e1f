from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from deutschshikhi.models.content.exercise_model import Exercise
from deutschshikhi.models.content.grammar_model import GrammarTopic
from deutschshikhi.models.content.lesson_model import ContentStatus, Lesson
from deutschshikhi.models.content.level_model import Level
from deutschshikhi.models.content.word_model import Word


def list_levels(db: Session) -> List[Level]:
    return db.query(Level).order_by(Level.order.asc(), Level.id.asc()).all()


def get_level(db: Session, level_id: int) -> Optional[Level]:
    return db.get(Level, level_id)


def list_published_lessons(db: Session, level_id: int) -> List[Lesson]:
    return (
        db.query(Lesson)
        .filter(Lesson.level_id == level_id, Lesson.status == ContentStatus.PUBLISHED)
        .order_by(Lesson.order.asc(), Lesson.id.asc())
        .all()
    )


def get_published_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
    return (
        db.query(Lesson)
        .filter(Lesson.id == lesson_id, Lesson.status == ContentStatus.PUBLISHED)
        .first()
    )


def get_published_lesson_by_order(db: Session, level_id: int, order: int) -> Optional[Lesson]:
    """Leçon publiée occupant la position ``order`` dans le niveau."""
    return (
        db.query(Lesson)
        .filter(
            Lesson.level_id == level_id,
            Lesson.order == order,
            Lesson.status == ContentStatus.PUBLISHED,
        )
        .order_by(Lesson.id.asc())
        .first()
    )


def count_published_lessons(db: Session) -> int:
    return db.query(Lesson).filter(Lesson.status == ContentStatus.PUBLISHED).count()


def list_lesson_words(db: Session, lesson_id: int) -> List[Word]:
    return db.query(Word).filter(Word.lesson_id == lesson_id).order_by(Word.id.asc()).all()


def count_existing_words(db: Session, word_ids: Iterable[int]) -> int:
    """Nombre de mots distincts existants parmi ``word_ids``."""
    unique_ids = {int(word_id) for word_id in word_ids}
    if not unique_ids:
        return 0
    return db.query(Word.id).filter(Word.id.in_(unique_ids)).count()


def list_lesson_exercises(db: Session, lesson_id: int) -> List[Exercise]:
    return (
        db.query(Exercise)
        .filter(Exercise.lesson_id == lesson_id)
        .order_by(Exercise.order.asc(), Exercise.id.asc())
        .all()
    )


def get_exercise(db: Session, exercise_id: int) -> Optional[Exercise]:
    return db.get(Exercise, exercise_id)


def list_grammar_topics(db: Session, level_id: Optional[int] = None) -> List[GrammarTopic]:
    query = db.query(GrammarTopic).filter(GrammarTopic.status == ContentStatus.PUBLISHED)
    if level_id is not None:
        query = query.filter(GrammarTopic.level_id == level_id)
    return query.order_by(GrammarTopic.order.asc(), GrammarTopic.id.asc()).all()


def get_grammar_topic(db: Session, id_or_slug: str) -> Optional[GrammarTopic]:
    query = db.query(GrammarTopic).filter(GrammarTopic.status == ContentStatus.PUBLISHED)
    if id_or_slug.isdigit():
        topic = query.filter(GrammarTopic.id == int(id_or_slug)).first()
        if topic is not None:
            return topic
    return query.filter(GrammarTopic.slug == id_or_slug).first()


def list_verified_words(
    db: Session,
    *,
    lesson_id: Optional[int] = None,
    level_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[Word], int]:
    """Mots vérifiés paginés, avec le total avant pagination."""
    query = db.query(Word).filter(Word.verified.is_(True))
    if lesson_id is not None:
        query = query.filter(Word.lesson_id == lesson_id)
    if level_id is not None:
        query = query.join(Lesson, Word.lesson_id == Lesson.id).filter(Lesson.level_id == level_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Word.german.ilike(pattern), Word.meaning.ilike(pattern)))

    total = query.count()
    words = query.order_by(Word.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return words, total


def get_verified_word(db: Session, word_id: int) -> Optional[Word]:
    return db.query(Word).filter(Word.id == word_id, Word.verified.is_(True)).first()


def random_verified_words(db: Session, count: int, level_id: Optional[int] = None) -> List[Word]:
    query = db.query(Word).filter(Word.verified.is_(True))
    if level_id is not None:
        query = query.join(Lesson, Word.lesson_id == Lesson.id).filter(Lesson.level_id == level_id)
    return query.order_by(func.random()).limit(count).all()


def list_exercises(
    db: Session,
    *,
    lesson_id: Optional[int] = None,
    type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Exercise], int]:
    query = db.query(Exercise)
    if lesson_id is not None:
        query = query.filter(Exercise.lesson_id == lesson_id)
    if type is not None:
        query = query.filter(Exercise.type == type)

    total = query.count()
    exercises = (
        query.order_by(Exercise.lesson_id.asc(), Exercise.order.asc(), Exercise.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return exercises, total


def list_lesson_grammar_topics(db: Session, lesson_id: int) -> List[GrammarTopic]:
    return (
        db.query(GrammarTopic)
        .filter(GrammarTopic.lesson_id == lesson_id, GrammarTopic.status == ContentStatus.PUBLISHED)
        .order_by(GrammarTopic.order.asc(), GrammarTopic.id.asc())
        .all()
    )

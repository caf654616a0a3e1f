from __future__ import annotations

from typing import Any, Optional

from deutschshikhi.models.content.lesson_model import ContentStatus
from deutschshikhi.schemas.common import CamelModel


class LevelRead(CamelModel):
    id: int
    code: str
    title: str
    description: Optional[str] = None
    order: int


class LessonRead(CamelModel):
    id: int
    level_id: int
    title: str
    description: Optional[str] = None
    order: int
    status: ContentStatus


class LessonDetail(LessonRead):
    content: Optional[Any] = None


class WordRead(CamelModel):
    id: int
    lesson_id: Optional[int] = None
    german: str
    meaning: str
    pronunciation: Optional[str] = None
    example: Optional[str] = None
    part_of_speech: Optional[str] = None
    verified: bool = False


class ExerciseRead(CamelModel):
    """Exercice tel qu'exposé aux apprenants: jamais de ``answer_key``."""

    id: int
    lesson_id: int
    type: str
    question: str
    options: Optional[Any] = None
    order: int = 0


class GrammarTopicRead(CamelModel):
    id: int
    slug: str
    title: str
    level_id: Optional[int] = None
    lesson_id: Optional[int] = None
    order: int


class GrammarTopicDetail(GrammarTopicRead):
    content: Optional[str] = None

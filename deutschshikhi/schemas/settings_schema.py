from typing import Optional

from pydantic import Field

from deutschshikhi.schemas.common import CamelModel


class SettingsRead(CamelModel):
    min_passing_score: int
    allow_retakes: bool
    max_retakes: int
    show_correct_answers: bool
    require_sequential_lessons: bool


class SettingsUpdate(CamelModel):
    min_passing_score: Optional[int] = Field(None, ge=0, le=100)
    allow_retakes: Optional[bool] = None
    max_retakes: Optional[int] = Field(None, ge=0)
    show_correct_answers: Optional[bool] = None
    require_sequential_lessons: Optional[bool] = None

from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from deutschshikhi.schemas.common import CamelModel


class ScoreIn(CamelModel):
    score: int = Field(..., ge=0, le=100)

    @field_validator("score", mode="before")
    @classmethod
    def _round_score(cls, value: Any) -> int:
        # Les scores sont stockés en entiers; 87.5 devient 88.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        if not 0 <= value <= 100:
            raise ValueError("score must be between 0 and 100")
        return int(value + 0.5)


class CheckAnswerIn(CamelModel):
    answer: Any


class LearnWordsIn(CamelModel):
    word_id: Optional[int] = Field(None, ge=1)
    word_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def _require_words(self) -> "LearnWordsIn":
        if self.word_id is None and not self.word_ids:
            raise ValueError("wordId or wordIds is required")
        return self

    def all_ids(self) -> List[int]:
        ids = list(self.word_ids or [])
        if self.word_id is not None:
            ids.append(self.word_id)
        return ids

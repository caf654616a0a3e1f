from typing import Any, Dict

from pydantic import Field

from deutschshikhi.gamification.xp_rules import ActivityType
from deutschshikhi.schemas.common import CamelModel


class AwardXPIn(CamelModel):
    activity_type: ActivityType
    options: Dict[str, Any] = Field(default_factory=dict)


class DailyGoalIn(CamelModel):
    target: int = Field(..., strict=True)

"""Suivi des séries quotidiennes (jours calendaires UTC)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

# Paliers de série -> XP bonus
STREAK_MILESTONE_BONUSES: Dict[int, int] = {
    7: 50,
    30: 200,
    100: 500,
    365: 1000,
}


@dataclass(frozen=True)
class StreakBonus:
    days: int
    xp: int

    @property
    def type(self) -> str:
        return f"STREAK_{self.days}_DAYS"

    @property
    def message(self) -> str:
        return f"{self.days}-Day Streak!"


@dataclass
class StreakUpdate:
    current: int
    longest: int
    last_activity_date: Optional[date]
    updated: bool = False
    broken: bool = False
    bonuses: List[StreakBonus] = field(default_factory=list)


def update_streak(
    current: int,
    longest: int,
    last_activity_date: Optional[date],
    today: date,
) -> StreakUpdate:
    """Applique l'activité du jour ``today`` à une série existante.

    - même jour (ou date dans le futur): aucun changement;
    - veille: ``current + 1``;
    - aucune activité: ``current = 1``;
    - deux jours ou plus: série cassée si ``current > 0``, puis ``current = 1``.
    """
    current = max(int(current or 0), 0)
    longest = max(int(longest or 0), current)

    if last_activity_date is not None and (today - last_activity_date).days <= 0:
        return StreakUpdate(current=current, longest=longest, last_activity_date=last_activity_date)

    broken = False
    if last_activity_date is None:
        new_current = 1
    elif (today - last_activity_date).days == 1:
        new_current = current + 1
    else:
        broken = current > 0
        new_current = 1

    bonuses: List[StreakBonus] = []
    if new_current in STREAK_MILESTONE_BONUSES:
        bonuses.append(StreakBonus(days=new_current, xp=STREAK_MILESTONE_BONUSES[new_current]))

    return StreakUpdate(
        current=new_current,
        longest=max(longest, new_current),
        last_activity_date=today,
        updated=True,
        broken=broken,
        bonuses=bonuses,
    )


def is_streak_active(last_activity_date: Optional[date], today: date) -> bool:
    if last_activity_date is None:
        return False
    return (today - last_activity_date).days <= 1

"""
Calcul du niveau à partir du total d'XP.

Le niveau n'est jamais une donnée de référence: il se déduit toujours de
``total``. Le niveau n exige ``100 + (n - 1) * 50`` XP pour passer au suivant.
"""
from __future__ import annotations

from dataclasses import dataclass

BASE_LEVEL_XP = 100
LEVEL_XP_INCREMENT = 50


def xp_required_for_level(level: int) -> int:
    """XP nécessaire pour terminer le niveau ``level``."""
    return BASE_LEVEL_XP + (max(level, 1) - 1) * LEVEL_XP_INCREMENT


@dataclass(frozen=True)
class LevelInfo:
    level: int
    current_level_xp: int
    next_level_xp: int
    total_xp_for_next_level: int


def compute_level(total: int) -> LevelInfo:
    total = max(int(total or 0), 0)
    level = 1
    consumed = 0
    while consumed + xp_required_for_level(level) <= total:
        consumed += xp_required_for_level(level)
        level += 1

    requirement = xp_required_for_level(level)
    return LevelInfo(
        level=level,
        current_level_xp=total - consumed,
        next_level_xp=requirement,
        total_xp_for_next_level=consumed + requirement,
    )


def level_for_total(total: int) -> int:
    return compute_level(total).level

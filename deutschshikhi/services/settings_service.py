"""Lecture et mise à jour des réglages globaux (singleton ``app_settings``)."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping

from sqlalchemy.orm import Session

from deutschshikhi.crud import settings_crud

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettingsValues:
    min_passing_score: int = 70
    allow_retakes: bool = True
    # 0 = illimité
    max_retakes: int = 0
    show_correct_answers: bool = True
    require_sequential_lessons: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = AppSettingsValues()

_FIELDS = tuple(DEFAULT_SETTINGS.as_dict().keys())


def get_settings(db: Session) -> AppSettingsValues:
    """Réglages effectifs. La ligne absente n'est jamais créée à la lecture."""
    row = settings_crud.get_settings_row(db)
    if row is None:
        return DEFAULT_SETTINGS
    return AppSettingsValues(**{name: getattr(row, name) for name in _FIELDS})


def update_settings(db: Session, updates: Mapping[str, Any]) -> AppSettingsValues:
    current = get_settings(db)
    cleaned = {name: value for name, value in updates.items() if name in _FIELDS and value is not None}
    merged = replace(current, **cleaned)
    settings_crud.upsert_settings(db, merged.as_dict())
    logger.info("Réglages mis à jour: %s", cleaned)
    return merged


def reset_settings(db: Session) -> AppSettingsValues:
    settings_crud.upsert_settings(db, DEFAULT_SETTINGS.as_dict())
    logger.info("Réglages réinitialisés aux valeurs par défaut")
    return DEFAULT_SETTINGS

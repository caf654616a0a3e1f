from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from deutschshikhi.models.settings_model import AppSettings

SETTINGS_ROW_ID = 1


def get_settings_row(db: Session) -> Optional[AppSettings]:
    return db.get(AppSettings, SETTINGS_ROW_ID)


def upsert_settings(db: Session, values: Mapping[str, Any]) -> AppSettings:
    row = get_settings_row(db)
    if row is None:
        row = AppSettings(id=SETTINGS_ROW_ID)
        db.add(row)
    for field_name, value in values.items():
        setattr(row, field_name, value)
    db.commit()
    db.refresh(row)
    return row

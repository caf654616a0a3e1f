from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_db, require_admin
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.settings_schema import SettingsRead, SettingsUpdate
from deutschshikhi.services import settings_service
from deutschshikhi.services.xp_service import xp_settings

router = APIRouter()


def _payload(values: settings_service.AppSettingsValues) -> dict:
    return dump(SettingsRead.model_validate(values.as_dict()))


@router.get("/", summary="Réglages publics")
def read_settings(db: Session = Depends(get_db)):
    return ok(_payload(settings_service.get_settings(db)))


@router.get("/xp", summary="Barème d'XP public")
def read_xp_settings():
    return ok(xp_settings())


@router.get("/admin")
def read_admin_settings(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return ok(_payload(settings_service.get_settings(db)))


@router.patch("/admin")
def update_admin_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    values = settings_service.update_settings(db, payload.model_dump(exclude_none=True))
    return ok(_payload(values), message="Settings updated successfully.")


@router.post("/admin/reset")
def reset_admin_settings(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    values = settings_service.reset_settings(db)
    return ok(_payload(values), message="Settings reset to defaults.")

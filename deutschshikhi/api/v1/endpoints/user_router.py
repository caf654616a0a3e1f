from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db
from deutschshikhi.crud import user_crud
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.user_schema import LanguageUpdate, UserRead, UserUpdate

router = APIRouter()


@router.get("/me")
def read_profile(current_user: User = Depends(get_current_user)):
    return ok(dump(UserRead.model_validate(current_user)))


@router.patch("/me")
def update_profile(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(current_user, field_name, value)
    db.commit()
    db.refresh(current_user)
    return ok(dump(UserRead.model_validate(current_user)), message="Profile updated.")


@router.patch("/me/language")
def update_language(
    payload: LanguageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.language = payload.language
    db.commit()
    return ok({"language": payload.language.value}, message="Language updated.")


@router.delete("/me")
def delete_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_crud.delete_user(db, current_user)
    return ok(message="Account deleted.")

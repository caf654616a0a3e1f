from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from deutschshikhi.api.v1.dependencies import get_current_user, get_db, get_identity_claims
from deutschshikhi.core.errors import AlreadyRegisteredError
from deutschshikhi.core.security import IdentityClaims
from deutschshikhi.crud import user_crud
from deutschshikhi.models.user.user_model import User
from deutschshikhi.schemas.common import dump, ok
from deutschshikhi.schemas.user_schema import UserRead

router = APIRouter()


@router.get("/me", summary="Profil de l'utilisateur authentifié (créé à la première connexion)")
def read_me(current_user: User = Depends(get_current_user)):
    return ok(dump(UserRead.model_validate(current_user)))


@router.post("/register", status_code=201, summary="Enregistre l'utilisateur du token")
def register(
    claims: IdentityClaims = Depends(get_identity_claims),
    db: Session = Depends(get_db),
):
    if user_crud.get_user_by_uid(db, claims.uid) is not None:
        exc = AlreadyRegisteredError()
        raise exc.to_http() from exc

    user = user_crud.create_user_from_identity(db, claims)
    return ok(dump(UserRead.model_validate(user)), message="User registered successfully.")

# Fichier: deutschshikhi/crud/user_crud.py

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from deutschshikhi.core.config import settings
from deutschshikhi.core.errors import ConflictError, DomainError, NotFoundError
from deutschshikhi.core.security import IdentityClaims
from deutschshikhi.models.user.user_model import User, UserLanguage

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_user_by_uid(db: Session, auth_uid: str) -> Optional[User]:
    """
    Récupère un utilisateur par l'identifiant du fournisseur d'identité.

    Args:
        db: La session de base de données.
        auth_uid: Le ``sub`` du token vérifié.

    Returns:
        L'objet User s'il est trouvé, sinon None.
    """
    return db.query(User).filter(User.auth_uid == auth_uid).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("user_not_found", "User not found")
    return user


def create_user_from_identity(db: Session, claims: IdentityClaims) -> User:
    """
    Crée l'utilisateur correspondant à un token vérifié.

    Les compteurs de gamification restent à NULL/valeurs par défaut: la
    couche ``gamification.state`` les construit à la lecture.
    """
    db_user = User(
        auth_uid=claims.uid,
        email=claims.email,
        name=claims.name,
        photo_url=claims.picture,
        language=UserLanguage.BN,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Nouvel utilisateur créé (id=%s, uid=%s)", db_user.id, claims.uid)
    return db_user


def delete_user(db: Session, user: User) -> None:
    """Suppression définitive; la progression et les succès suivent en cascade."""
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info("Compte supprimé (id=%s)", user_id)


def update_user_state(
    db: Session,
    user_id: int,
    mutate: Callable[[User], T],
    *,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Applique ``mutate`` sur une lecture fraîche de l'utilisateur puis valide.

    La colonne ``version_id`` fait échouer le flush si un autre écrivain est
    passé entre-temps; la mutation est alors rejouée sur l'état relu.
    Un doublon sur ``user_achievements`` est traité de la même façon.
    Toutes les modifications faites par ``mutate`` partent dans un seul commit.
    """
    attempts = max(int(max_attempts or settings.USER_STATE_MAX_RETRIES or 1), 1)

    for attempt in range(1, attempts + 1):
        user = db.get(User, user_id, populate_existing=True)
        if user is None:
            raise NotFoundError("user_not_found", "User not found")

        try:
            result = mutate(user)
            db.commit()
            return result
        except (StaleDataError, IntegrityError):
            # Un autre écrivain a modifié la ligne ou inséré le même succès.
            db.rollback()
            logger.warning(
                "Écriture concurrente sur l'utilisateur %s (tentative %s/%s)",
                user_id,
                attempt,
                attempts,
            )
        except DomainError:
            db.rollback()
            raise

    raise ConflictError(
        "concurrent_update",
        "The user was modified concurrently, please retry.",
    )

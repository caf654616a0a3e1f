import logging
import re
from urllib.parse import unquote

from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deutschshikhi.db import session as db_session
from deutschshikhi.core import security
from deutschshikhi.crud import user_crud
from deutschshikhi.models.user.user_model import User

log = logging.getLogger(__name__)


def get_db(request: Request = None) -> Generator[Session, None, None]:  # type: ignore[assignment]
    """Provide a SQLAlchemy session shared within a single request.

    ``get_current_user`` and the route handler both depend on ``get_db``; the
    session is cached on ``request.state`` with a reference counter so the
    user returned by the authentication dependency stays attached until the
    last dependency exits.
    """

    if request is None:
        db = db_session.SessionLocal()
        try:
            yield db
        finally:
            db.close()
        return

    state = request.state
    db = getattr(state, "_db_session", None)
    if db is None:
        db = db_session.SessionLocal()
        setattr(state, "_db_session", db)
        setattr(state, "_db_refcount", 0)

    refcount = getattr(state, "_db_refcount", 0) + 1
    setattr(state, "_db_refcount", refcount)

    try:
        yield db
    finally:
        refcount = getattr(state, "_db_refcount", 1) - 1
        if refcount <= 0:
            try:
                db.close()
            finally:
                for attr in ("_db_session", "_db_refcount"):
                    if hasattr(state, attr):
                        delattr(state, attr)
        else:
            setattr(state, "_db_refcount", refcount)


def _normalize_token_value(raw_token: str | None) -> str | None:
    """Return a clean JWT string extracted from various transport formats.

    Browsers can percent-encode cookie values (``Bearer%20…``) and some
    frontends send quoted strings. We normalise those cases and also accept
    case-insensitive ``Bearer`` prefixes.
    """

    if raw_token is None:
        return None

    token = raw_token.strip().strip('"').strip("'")
    if not token:
        return None

    token = unquote(token)

    match = re.match(r"^(bearer|token)[\s,:]+(.+)$", token, flags=re.IGNORECASE)
    if match:
        token = match.group(2)

    token = token.strip()
    return token or None


def _token_candidates(request: Request) -> tuple[str | None, ...]:
    return (
        request.headers.get("Authorization"),
        request.headers.get("X-Access-Token"),
        request.cookies.get("access_token"),
    )


def _verify(token: str) -> security.IdentityClaims:
    try:
        return security.verify_id_token(token)
    except security.TokenExpiredError:
        log.warning("Validation échouée: Le token a expiré.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="token_expired")
    except security.InvalidTokenError:
        log.warning("Validation échouée: Le token est invalide ou mal formé.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )


def _user_from_claims(claims: security.IdentityClaims, db: Session) -> User:
    user = user_crud.get_user_by_uid(db, claims.uid)
    if user is not None:
        return user

    try:
        return user_crud.create_user_from_identity(db, claims)
    except IntegrityError:
        # Première connexion simultanée depuis deux onglets.
        db.rollback()
        user = user_crud.get_user_by_uid(db, claims.uid)
        if user is None:
            raise
        return user


def resolve_user(request: Request, db: Session) -> Optional[User]:
    """Return the authenticated user, or ``None`` when no token was sent."""

    last_unauthorized_error: HTTPException | None = None

    for candidate in _token_candidates(request):
        token = _normalize_token_value(candidate)
        if not token:
            continue
        try:
            claims = _verify(token)
        except HTTPException as exc:
            last_unauthorized_error = exc
            continue
        return _user_from_claims(claims, db)

    if last_unauthorized_error is not None:
        raise last_unauthorized_error
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = resolve_user(request, db)
    if user is None:
        log.warning("Validation échouée: Pas de token fourni.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    try:
        return resolve_user(request, db)
    except HTTPException:
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin_required")
    return current_user


def get_identity_claims(request: Request) -> security.IdentityClaims:
    """Verified token claims, without creating the local user."""

    last_unauthorized_error: HTTPException | None = None
    for candidate in _token_candidates(request):
        token = _normalize_token_value(candidate)
        if not token:
            continue
        try:
            return _verify(token)
        except HTTPException as exc:
            last_unauthorized_error = exc

    if last_unauthorized_error is not None:
        raise last_unauthorized_error
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

# Fichier: deutschshikhi/core/security.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from deutschshikhi.core.config import settings

# --- Configuration de la Sécurité ---
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)


class TokenExpiredError(Exception):
    """The identity token is well formed but its ``exp`` is in the past."""


class InvalidTokenError(Exception):
    """The identity token could not be verified."""


@dataclass(frozen=True)
class IdentityClaims:
    """Subset of the identity provider claims the API relies on."""

    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: bool = False


def _verification_key() -> str:
    # Les fournisseurs RS256 exposent une clé publique, sinon on retombe sur le secret partagé.
    return settings.AUTH_PUBLIC_KEY or SECRET_KEY


def verify_id_token(token: str) -> IdentityClaims:
    """Verify an externally issued ID token and return its identity claims."""

    options = {"verify_aud": settings.AUTH_AUDIENCE is not None}
    try:
        payload = jwt.decode(
            token,
            _verification_key(),
            algorithms=settings.AUTH_ALGORITHMS,
            audience=settings.AUTH_AUDIENCE,
            issuer=settings.AUTH_ISSUER,
            options=options,
        )
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("token_expired") from exc
    except JWTError as exc:
        raise InvalidTokenError("invalid_token") from exc

    uid = payload.get("uid") or payload.get("sub") or payload.get("user_id")
    if not uid:
        logger.warning("Validation échouée: le token ne contient pas de 'sub'.")
        raise InvalidTokenError("missing_subject")

    return IdentityClaims(
        uid=str(uid),
        email=payload.get("email"),
        name=payload.get("name"),
        picture=payload.get("picture"),
        email_verified=bool(payload.get("email_verified", False)),
    )


def create_id_token(
    subject: str,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Issue an HS256 identity token (development tooling and tests)."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject), **claims}
    if settings.AUTH_AUDIENCE:
        to_encode.setdefault("aud", settings.AUTH_AUDIENCE)
    if settings.AUTH_ISSUER:
        to_encode.setdefault("iss", settings.AUTH_ISSUER)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

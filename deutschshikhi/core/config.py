# Fichier: deutschshikhi/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional, List
from pydantic import ValidationError, field_validator
import sys


class Settings(BaseSettings):
    DATABASE_URL: str
    ENVIRONMENT: str = "development"

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5173",
    ]

    # Clé utilisée par la SessionMiddleware (admin) et la vérification HS256.
    SECRET_KEY: str

    # --- Fournisseur d'identité externe ---
    AUTH_ALGORITHMS: List[str] = ["HS256"]
    # Clé publique PEM lorsque le fournisseur signe en RS256.
    AUTH_PUBLIC_KEY: Optional[str] = None
    AUTH_AUDIENCE: Optional[str] = None
    AUTH_ISSUER: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 1
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    # Gamification
    LEADERBOARD_MAX_LIMIT: int = 100
    USER_STATE_MAX_RETRIES: int = 3

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs always use the asyncpg driver.

        Managed Postgres providers still hand out ``postgres://`` URLs, which
        SQLAlchemy no longer understands. Those (and the psycopg variants) are
        upgraded to ``postgresql+asyncpg://``; SQLite URLs are left untouched.
        """

        if not isinstance(value, str):
            return value

        if "+asyncpg" in value:
            return value

        replacements = {
            "postgres://": "postgresql+asyncpg://",
            "postgresql://": "postgresql+asyncpg://",
            "postgresql+psycopg2://": "postgresql+asyncpg://",
            "postgresql+psycopg://": "postgresql+asyncpg://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix) :]

        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Print missing or invalid environment variables before re-raising.

    The exception bubbles up at import time, so the structured payload is
    written to stderr to make the faulty variable obvious in server logs.
    """

    print("Configuration error while loading environment variables:", file=sys.stderr)

    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Unknown validation error")
        type_name = error.get("type")
        hint = f"{message} (type={type_name})" if type_name else message
        print(f"  - {location}: {hint}", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise

"""Moteurs SQLAlchemy et fabrique de sessions.

Les deux moteurs pointent sur la même base: l'asynchrone sert à la création
des tables au démarrage et à la console d'administration, le synchrone aux
sessions des requêtes API. ``DATABASE_URL`` est déjà normalisée par la
configuration (``postgresql+asyncpg://`` ou SQLite).
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker

from deutschshikhi.core.config import settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///./deutschshikhi_local.db"

# Renseignés par ``configure_database``.
async_engine: AsyncEngine
sync_engine: Engine
SessionLocal: sessionmaker


@dataclass(frozen=True)
class EngineUrls:
    async_url: URL
    sync_url: URL
    async_connect_args: Dict[str, Any] = field(default_factory=dict)
    sync_connect_args: Dict[str, Any] = field(default_factory=dict)


def engine_urls(database_url: str) -> EngineUrls:
    """Dérive les URL des deux moteurs à partir d'une seule URL de base."""
    url = make_url(database_url)
    backend = url.get_backend_name()

    if backend == "sqlite":
        return EngineUrls(
            async_url=url.set(drivername="sqlite+aiosqlite"),
            sync_url=url.set(drivername="sqlite"),
            sync_connect_args={"check_same_thread": False},
        )

    if backend == "postgresql":
        # psycopg2 lit ``sslmode`` dans l'URL; asyncpg attend le même mode via ``ssl``.
        query = dict(url.query)
        sslmode = query.pop("sslmode", None)
        return EngineUrls(
            async_url=url.set(drivername="postgresql+asyncpg", query=query),
            sync_url=url.set(drivername="postgresql+psycopg2"),
            async_connect_args={"ssl": sslmode} if sslmode else {},
        )

    return EngineUrls(async_url=url, sync_url=url)


def sqlite_fallback_allowed() -> bool:
    if os.getenv("DISABLE_SQLITE_FALLBACK") == "1":
        return False
    return (settings.ENVIRONMENT or "").lower() in {"development", "local"}


def log_slow_queries(engine: Engine, threshold_ms: int) -> None:
    """Journalise en warning les requêtes plus lentes que ``threshold_ms``."""
    if threshold_ms <= 0:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started_at", []).append(perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _stop(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (perf_counter() - conn.info["query_started_at"].pop()) * 1000.0
        if elapsed_ms >= threshold_ms:
            logger.warning("SQL lente (%.1f ms): %s", elapsed_ms, " ".join(statement.split())[:200])


def wait_for_database(engine: Engine) -> None:
    """``SELECT 1`` avec backoff exponentiel; SQLite n'a droit qu'à un essai."""
    attempts = 1 if engine.dialect.name == "sqlite" else max(settings.DATABASE_CONNECTION_MAX_RETRIES, 1)
    delay = max(settings.DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS, 0.1)

    for attempt in range(1, attempts + 1):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return
        except (OperationalError, OSError) as exc:
            if attempt == attempts:
                raise
            logger.warning(
                "Base de données injoignable (tentative %s/%s): %s. Nouvel essai dans %.1f s.",
                attempt,
                attempts,
                exc,
                delay,
            )
            time.sleep(delay)
            delay = min(delay * 2, 30.0)


def configure_database(database_url: str | None = None, *, allow_fallback: bool = True) -> None:
    """Construit les moteurs et ``SessionLocal``.

    En développement, une base injoignable est remplacée par un fichier
    SQLite local pour que l'API démarre quand même.
    """
    global async_engine, sync_engine, SessionLocal

    urls = engine_urls(str(database_url or settings.DATABASE_URL))
    logger.info("Configuration de la base de données: %s", urls.sync_url.render_as_string())

    candidate = create_engine(urls.sync_url, pool_pre_ping=True, connect_args=urls.sync_connect_args)
    try:
        wait_for_database(candidate)
    except (OperationalError, OSError) as exc:
        candidate.dispose()
        if not (allow_fallback and sqlite_fallback_allowed()):
            logger.error("Connexion à la base de données échouée: %s", exc)
            raise
        logger.warning("Base de données injoignable (%s), bascule vers SQLite.", exc)
        configure_database(SQLITE_FALLBACK_URL, allow_fallback=False)
        return

    sync_engine = candidate
    async_engine = create_async_engine(urls.async_url, connect_args=urls.async_connect_args)
    log_slow_queries(sync_engine, settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS)
    log_slow_queries(async_engine.sync_engine, settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS)
    SessionLocal = sessionmaker(autoflush=False, bind=sync_engine)


configure_database()

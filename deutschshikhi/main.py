import logging
import re

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqladmin import Admin
from sqladmin.authentication import AuthenticationBackend
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

# Imports de l'application
from deutschshikhi.core.config import settings
from deutschshikhi.core import security
from deutschshikhi.db.base import Base
from deutschshikhi.db import session as db_session
from deutschshikhi.api.v1.api import api_router
from deutschshikhi.crud import user_crud
from deutschshikhi.admin import ADMIN_VIEWS

# --- Configuration du logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# --- Initialisation de l'application FastAPI ---
app = FastAPI(
    title="DeutschShikhi API",
    openapi_url=f"{API_PREFIX}/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    origins = sorted(
        {origin for origin in (_sanitize_origin(o) for o in settings.BACKEND_CORS_ORIGINS) if origin}
    )
    logger.info("CORS origins configurés: %s", origins)
    return origins


# --- Configuration des Middlewares ---
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "X-Access-Token"],
)


# --- Gestion des erreurs: enveloppe {success, message, data} ---
def _error_response(status_code: int, message: str, *, code: str | None = None, data=None) -> JSONResponse:
    content: dict = {"success": False, "message": message}
    if code is not None:
        content["code"] = code
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        return _error_response(
            exc.status_code,
            str(detail.get("message") or detail.get("code") or "Error"),
            code=detail.get("code"),
            data=detail.get("data"),
        )
    return _error_response(exc.status_code, str(detail))


_FIELD_PATTERN = re.compile(r"^(body|query|path)\.")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        errors.append({"field": _FIELD_PATTERN.sub("", location), "message": error.get("msg")})
    message = errors[0]["message"] if errors else "Invalid input."
    return _error_response(status.HTTP_400_BAD_REQUEST, str(message), code="invalid_input", data={"errors": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Erreur inattendue sur %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


# --- Initialisation de l'Admin ---
class AdminAuth(AuthenticationBackend):
    """Connexion au back-office avec un ID token d'un compte administrateur."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        token = form.get("password") or form.get("token")
        if not token:
            return False

        try:
            claims = security.verify_id_token(str(token))
        except (security.TokenExpiredError, security.InvalidTokenError):
            logger.warning("Connexion admin refusée: token invalide.")
            return False

        with db_session.SessionLocal() as db:
            user = user_crud.get_user_by_uid(db, claims.uid)
            if user is None or not user.is_admin:
                logger.warning("Connexion admin refusée pour %s.", claims.uid)
                return False
            request.session.update({"token": "admin_logged_in", "user": user.auth_uid})
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return "token" in request.session


authentication_backend = AdminAuth(secret_key=settings.SECRET_KEY)
admin = Admin(
    app,
    db_session.async_engine,
    authentication_backend=authentication_backend,
    base_url="/admin",
    title="DeutschShikhi Admin",
)
for view in ADMIN_VIEWS:
    admin.add_view(view)

app.include_router(api_router, prefix=API_PREFIX)


# --- Événement de Démarrage ---
@app.on_event("startup")
async def startup():
    logger.info("Vérification et création des tables de la base de données...")
    async with db_session.async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Les tables de la base de données sont prêtes.")


# --- Routes de santé ---
@app.get("/")
def read_root():
    return {"success": True, "message": "Welcome to DeutschShikhi API!"}


@app.get(f"{API_PREFIX}/health")
def health():
    return {"success": True, "message": "ok", "data": {"environment": settings.ENVIRONMENT}}

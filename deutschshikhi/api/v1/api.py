# Fichier: deutschshikhi/api/v1/api.py
from fastapi import APIRouter
from .endpoints import (
    auth_router,
    user_router,
    level_router,
    lesson_router,
    exercise_router,
    word_router,
    grammar_router,
    progress_router,
    xp_router,
    achievement_router,
    leaderboard_router,
    settings_router,
)

api_router = APIRouter()

api_router.include_router(auth_router.router, prefix="/auth", tags=["Auth"])
api_router.include_router(user_router.router, prefix="/users", tags=["Users"])
api_router.include_router(level_router.router, prefix="/levels", tags=["Content"])
api_router.include_router(lesson_router.router, prefix="/lessons", tags=["Content"])
api_router.include_router(exercise_router.router, prefix="/exercises", tags=["Exercises"])
api_router.include_router(word_router.router, prefix="/words", tags=["Words"])
api_router.include_router(grammar_router.router, prefix="/grammar", tags=["Grammar"])
api_router.include_router(progress_router.router, prefix="/progress", tags=["Progress"])
api_router.include_router(xp_router.router, prefix="/xp", tags=["XP"])
api_router.include_router(achievement_router.router, prefix="/achievements", tags=["Achievements"])
api_router.include_router(leaderboard_router.router, prefix="/leaderboard", tags=["Leaderboard"])
api_router.include_router(settings_router.router, prefix="/settings", tags=["Settings"])

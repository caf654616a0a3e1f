"""Déclare l'ensemble des modèles SQLAlchemy pour la création des tables au démarrage."""

from deutschshikhi.db.base_class import Base

# Utilisateurs et succès
from deutschshikhi.models.user.user_model import User
from deutschshikhi.models.user.achievement_model import UserAchievement

# Contenu pédagogique
from deutschshikhi.models.content.level_model import Level
from deutschshikhi.models.content.lesson_model import Lesson
from deutschshikhi.models.content.word_model import Word
from deutschshikhi.models.content.exercise_model import Exercise
from deutschshikhi.models.content.grammar_model import GrammarTopic

# Progression & réglages
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.models.settings_model import AppSettings

__all__ = (
    "Base",
    "User",
    "UserAchievement",
    "Level",
    "Lesson",
    "Word",
    "Exercise",
    "GrammarTopic",
    "LessonProgress",
    "AppSettings",
)

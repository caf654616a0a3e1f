"""Centralised configuration for the SQLAdmin back-office."""

from __future__ import annotations

import json
from typing import Any

from markupsafe import Markup, escape
from sqladmin import ModelView

from deutschshikhi.models.content.exercise_model import Exercise
from deutschshikhi.models.content.grammar_model import GrammarTopic
from deutschshikhi.models.content.lesson_model import Lesson
from deutschshikhi.models.content.level_model import Level
from deutschshikhi.models.content.word_model import Word
from deutschshikhi.models.progress.lesson_progress_model import LessonProgress
from deutschshikhi.models.settings_model import AppSettings
from deutschshikhi.models.user.achievement_model import UserAchievement
from deutschshikhi.models.user.user_model import User


def _json_preview(value: Any, *, max_chars: int = 160) -> Markup:
    """Render JSON content as a trimmed <pre> block for the admin."""
    if value in (None, ""):
        return Markup("<span style='color:#9ca3af;'>—</span>")

    if not isinstance(value, (dict, list)):
        text = str(value)
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, indent=2)
        except TypeError:
            text = str(value)

    if len(text) > max_chars:
        text = text[:max_chars] + "…"

    return Markup(
        "<pre style='max-width:520px; white-space:pre-wrap; margin:0; font-size:12px;'>{}</pre>"
    ).format(escape(text))


def _json_full(value: Any) -> Markup:
    return _json_preview(value, max_chars=10000)


class UserAdmin(ModelView, model=User):
    name = "Utilisateur"
    name_plural = "Utilisateurs"
    icon = "fa-solid fa-user"
    category = "Utilisateurs"
    column_list = [
        User.id,
        User.name,
        User.email,
        User.role,
        User.language,
        User.xp_points,
        User.level,
        User.streak_current,
        User.streak_longest,
        User.created_at,
    ]
    column_searchable_list = [User.name, User.email, User.auth_uid]
    column_sortable_list = [User.created_at, User.xp_points, User.streak_longest]
    column_default_sort = [(User.created_at, True)]  # newest first
    column_labels = {
        User.xp_points: "XP",
        User.streak_current: "Série",
        User.streak_longest: "Meilleure série",
    }
    column_formatters_detail = {
        User.achievement_progress: lambda m, _: _json_full(m.achievement_progress),
    }
    # L'état de gamification passe par l'API pour garder level/version cohérents.
    form_excluded_columns = [
        "version_id",
        "lesson_progress",
        "user_achievements",
        "achievement_progress",
        "level",
    ]
    can_export = True


class LevelAdmin(ModelView, model=Level):
    name = "Niveau"
    name_plural = "Niveaux"
    icon = "fa-solid fa-stairs"
    category = "Contenu"
    column_list = [Level.id, Level.code, Level.title, Level.order]
    column_searchable_list = [Level.code, Level.title]
    column_default_sort = [(Level.order, False)]
    form_excluded_columns = ["lessons", "created_at"]
    can_export = True


class LessonAdmin(ModelView, model=Lesson):
    name = "Leçon"
    name_plural = "Leçons"
    icon = "fa-solid fa-book"
    category = "Contenu"
    column_list = [Lesson.id, Lesson.level, Lesson.order, Lesson.title, Lesson.status]
    column_searchable_list = [Lesson.title]
    column_sortable_list = [Lesson.order, Lesson.level_id]
    column_formatters_detail = {
        Lesson.content: lambda m, _: _json_full(m.content),
    }
    form_excluded_columns = ["words", "exercises", "created_at", "updated_at"]
    can_export = True


class WordAdmin(ModelView, model=Word):
    name = "Mot"
    name_plural = "Mots"
    icon = "fa-solid fa-language"
    category = "Contenu"
    column_list = [Word.id, Word.german, Word.meaning, Word.part_of_speech, Word.lesson, Word.verified]
    column_searchable_list = [Word.german, Word.meaning]
    can_export = True


class ExerciseAdmin(ModelView, model=Exercise):
    name = "Exercice"
    name_plural = "Exercices"
    icon = "fa-solid fa-list-check"
    category = "Contenu"
    column_list = [Exercise.id, Exercise.lesson, Exercise.type, Exercise.question, Exercise.answer_key]
    column_searchable_list = [Exercise.question]
    column_formatters = {
        Exercise.answer_key: lambda m, _: _json_preview(m.answer_key),
    }
    column_formatters_detail = {
        Exercise.options: lambda m, _: _json_full(m.options),
        Exercise.answer_key: lambda m, _: _json_full(m.answer_key),
    }
    can_export = True


class GrammarTopicAdmin(ModelView, model=GrammarTopic):
    name = "Grammaire"
    name_plural = "Grammaire"
    icon = "fa-solid fa-spell-check"
    category = "Contenu"
    column_list = [GrammarTopic.id, GrammarTopic.slug, GrammarTopic.title, GrammarTopic.status, GrammarTopic.order]
    column_searchable_list = [GrammarTopic.slug, GrammarTopic.title]
    form_excluded_columns = ["created_at"]
    can_export = True


class LessonProgressAdmin(ModelView, model=LessonProgress):
    name = "Progression"
    name_plural = "Progressions"
    icon = "fa-solid fa-chart-line"
    category = "Gamification"
    column_list = [
        LessonProgress.user,
        LessonProgress.lesson,
        LessonProgress.score,
        LessonProgress.passed,
        LessonProgress.attempts,
        LessonProgress.completed_at,
    ]
    column_default_sort = [(LessonProgress.completed_at, True)]
    can_create = False
    can_export = True


class UserAchievementAdmin(ModelView, model=UserAchievement):
    name = "Succès utilisateur"
    name_plural = "Succès utilisateurs"
    icon = "fa-solid fa-medal"
    category = "Gamification"
    column_list = [
        UserAchievement.user,
        UserAchievement.achievement_id,
        UserAchievement.reward,
        UserAchievement.claimed,
        UserAchievement.unlocked_at,
    ]
    column_default_sort = [(UserAchievement.unlocked_at, True)]
    can_create = False
    can_edit = False
    can_export = True


class AppSettingsAdmin(ModelView, model=AppSettings):
    name = "Réglages"
    name_plural = "Réglages"
    icon = "fa-solid fa-sliders"
    category = "Configuration"
    column_list = [
        AppSettings.min_passing_score,
        AppSettings.allow_retakes,
        AppSettings.max_retakes,
        AppSettings.show_correct_answers,
        AppSettings.require_sequential_lessons,
        AppSettings.updated_at,
    ]
    form_excluded_columns = ["updated_at"]
    can_delete = False


ADMIN_VIEWS = (
    UserAdmin,
    LevelAdmin,
    LessonAdmin,
    WordAdmin,
    ExerciseAdmin,
    GrammarTopicAdmin,
    LessonProgressAdmin,
    UserAchievementAdmin,
    AppSettingsAdmin,
)

from deutschshikhi.models.settings_model import AppSettings
from deutschshikhi.services import settings_service


def test_defaults_are_returned_without_writing(db_session):
    values = settings_service.get_settings(db_session)

    assert values == settings_service.DEFAULT_SETTINGS
    assert values.min_passing_score == 70
    assert values.require_sequential_lessons is True
    assert db_session.query(AppSettings).count() == 0


def test_partial_update_keeps_other_fields(db_session):
    settings_service.update_settings(db_session, {"min_passing_score": 80, "max_retakes": None})
    values = settings_service.update_settings(db_session, {"allow_retakes": False})

    assert values.min_passing_score == 80
    assert values.allow_retakes is False
    assert values.max_retakes == 0
    assert db_session.query(AppSettings).count() == 1


def test_unknown_fields_are_ignored(db_session):
    values = settings_service.update_settings(db_session, {"theme": "dark", "show_correct_answers": False})
    assert values.show_correct_answers is False
    assert not hasattr(values, "theme")


def test_reset_restores_defaults(db_session):
    settings_service.update_settings(db_session, {"min_passing_score": 95})
    values = settings_service.reset_settings(db_session)

    assert values == settings_service.DEFAULT_SETTINGS
    assert settings_service.get_settings(db_session).min_passing_score == 70

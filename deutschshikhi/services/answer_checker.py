"""Correction des réponses aux exercices, selon leur type."""
from __future__ import annotations

from typing import Any, Dict, Mapping

from deutschshikhi.core.errors import InvalidInputError
from deutschshikhi.models.content.exercise_model import Exercise, ExerciseType


def strict_equal(left: Any, right: Any) -> bool:
    """Égalité structurelle sans coercition entre types (``True != 1``, ``"1" != 1``)."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right

    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left.keys()) != set(right.keys()):
            return False
        return all(strict_equal(left[key], right[key]) for key in left)

    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(strict_equal(a, b) for a, b in zip(left, right))

    if type(left) is not type(right):
        return False
    return left == right


def _normalize_fill(value: str) -> str:
    return value.strip().casefold()


def is_correct(exercise_type: str, answer_key: Any, submitted: Any) -> bool:
    if exercise_type == ExerciseType.MCQ.value:
        return strict_equal(submitted, answer_key)

    if exercise_type == ExerciseType.FILL.value:
        if not isinstance(submitted, str):
            raise InvalidInputError("invalid_answer", "Fill-in answers must be text")
        if not isinstance(answer_key, str):
            return False
        return _normalize_fill(submitted) == _normalize_fill(answer_key)

    if exercise_type == ExerciseType.MATCH.value:
        return strict_equal(submitted, answer_key)

    raise InvalidInputError(
        "invalid_exercise_type",
        f"Unsupported exercise type: {exercise_type}",
        {"allowed": [item.value for item in ExerciseType]},
    )


def check_answer(exercise: Exercise, submitted: Any, *, show_correct_answers: bool = True) -> Dict[str, Any]:
    """Renvoie ``isCorrect`` et, pour une mauvaise réponse, la bonne réponse si autorisé."""
    correct = is_correct(exercise.type, exercise.answer_key, submitted)
    result: Dict[str, Any] = {"isCorrect": correct}
    if not correct and show_correct_answers:
        result["correctAnswer"] = exercise.answer_key
    if exercise.explanation and not correct and show_correct_answers:
        result["explanation"] = exercise.explanation
    return result

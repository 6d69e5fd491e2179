"""
Input checks shared by the submission and admin paths.

Scores are whole numbers in [0, MAX_SCORE]; awarded points are whole numbers
in [0, MAX_POINTS_PER_PREDICTION] or None (not scored).
"""
from typing import Any, Optional

from .config import MAX_POINTS_PER_PREDICTION, MAX_SCORE
from .errors import InvalidInput


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid score
    return isinstance(value, int) and not isinstance(value, bool)


def validate_score(value: Any, field: str = "score") -> int:
    if not _is_int(value):
        raise InvalidInput(f"{field} must be a whole number", {"field": field})
    if value < 0 or value > MAX_SCORE:
        raise InvalidInput(f"{field} must be between 0 and {MAX_SCORE}", {"field": field})
    return value


def validate_optional_score(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    return validate_score(value, field)


def validate_points(value: Any) -> Optional[int]:
    if value is None:
        return None
    if not _is_int(value) or value < 0 or value > MAX_POINTS_PER_PREDICTION:
        raise InvalidInput(
            f"points_earned must be null or between 0 and {MAX_POINTS_PER_PREDICTION}",
            {"field": "points_earned"},
        )
    return value

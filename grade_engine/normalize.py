"""
Normalization of raw score payloads.

Callers may hand the engine numbers or numeric strings. They are converted
here, once, into the ``float`` component scores and ``int`` question scores
the rest of the engine works with.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from grade_engine.errors import GradeValidationError


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    """
    Parse a value as a finite Decimal.

    Raises:
        GradeValidationError: If the value is a boolean, not numeric, or
            not finite.
    """
    if isinstance(value, bool):
        raise GradeValidationError(f"Invalid numeric value for {field_name}: {value}")

    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise GradeValidationError(f"Invalid numeric value for {field_name}: {value}") from e

    if not number.is_finite():
        raise GradeValidationError(f"Invalid numeric value for {field_name}: {value}")
    return number


def normalize_component_score(value: Any) -> float | None:
    """
    Convert a raw component score into a percentage.

    Args:
        value: Number, numeric string, blank string or None.

    Returns:
        The score as a float, or None to clear the score.

    Raises:
        GradeValidationError: If the value is not numeric or outside [0, 100].
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    number = _parse_decimal(value, "grade")
    if number < 0 or number > 100:
        raise GradeValidationError(f"Grade must be between 0 and 100, got: {value}")
    return float(number)


def normalize_question_score(value: Any) -> int:
    """
    Convert a raw question score into whole points.

    Raises:
        GradeValidationError: If the value is missing, not numeric or
            not a whole number.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise GradeValidationError("Score is required")

    number = _parse_decimal(value, "score")
    if number != number.to_integral_value():
        raise GradeValidationError(f"Score must be a whole number of points, got: {value}")
    return int(number)


def require_id(value: str | None, field_name: str) -> str:
    """Return a stripped identifier, rejecting missing or blank ones."""
    if value is None or not str(value).strip():
        raise GradeValidationError(f"{field_name} is required")
    return str(value).strip()

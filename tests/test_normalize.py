"""
Unit tests for score payload normalization.
"""

from decimal import Decimal

import pytest

from grade_engine.errors import GradeValidationError
from grade_engine.normalize import (
    normalize_component_score,
    normalize_question_score,
    require_id,
)


class TestNormalizeComponentScore:
    """Tests for component score payloads."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, 0.0),
            (100, 100.0),
            (87.5, 87.5),
            ("92.25", 92.25),
            (" 70 ", 70.0),
            ("1e1", 10.0),
            (Decimal("55.5"), 55.5),
        ],
    )
    def test_valid(self, value: object, expected: float) -> None:
        """Test accepted numbers and numeric strings."""
        result = normalize_component_score(value)

        assert result == expected
        assert isinstance(result, float)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_clears(self, value: object) -> None:
        """Test that missing payloads mean 'clear the score'."""
        assert normalize_component_score(value) is None

    @pytest.mark.parametrize(
        "value",
        ["abc", "12abc", True, False, float("nan"), float("inf"), "-inf", "NaN", [50]],
    )
    def test_not_numeric(self, value: object) -> None:
        """Test that non-numeric payloads are rejected."""
        with pytest.raises(GradeValidationError, match="Invalid numeric value"):
            normalize_component_score(value)

    @pytest.mark.parametrize("value", [-1, "-0.5", 100.5, "250"])
    def test_out_of_range(self, value: object) -> None:
        """Test that numbers outside [0, 100] are rejected."""
        with pytest.raises(GradeValidationError, match="between 0 and 100"):
            normalize_component_score(value)


class TestNormalizeQuestionScore:
    """Tests for question score payloads."""

    @pytest.mark.parametrize("value,expected", [(0, 0), (5, 5), ("7", 7), (3.0, 3), ("4.00", 4)])
    def test_valid(self, value: object, expected: int) -> None:
        """Test whole-point payloads."""
        result = normalize_question_score(value)

        assert result == expected
        assert isinstance(result, int)

    @pytest.mark.parametrize("value", [2.5, "0.1"])
    def test_fractional(self, value: object) -> None:
        """Test that fractional points are rejected."""
        with pytest.raises(GradeValidationError, match="whole number"):
            normalize_question_score(value)

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value: object) -> None:
        """Test that a score is required."""
        with pytest.raises(GradeValidationError, match="required"):
            normalize_question_score(value)

    def test_boolean(self) -> None:
        """Test that booleans are not points."""
        with pytest.raises(GradeValidationError):
            normalize_question_score(True)


class TestRequireId:
    """Tests for identifier checks."""

    def test_strips(self) -> None:
        """Test that surrounding whitespace is removed."""
        assert require_id("  abc ", "Course ID") == "abc"

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_missing(self, value: str | None) -> None:
        """Test that blank identifiers are rejected."""
        with pytest.raises(GradeValidationError, match="Course ID is required"):
            require_id(value, "Course ID")

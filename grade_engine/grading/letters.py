"""
Percentage to letter grade mapping.
"""

from typing import ClassVar


class LetterGradeMapper:
    """Maps a final percentage onto the fixed letter grade scale."""

    # Highest breakpoint first; the first threshold the percentage reaches wins.
    BREAKPOINTS: ClassVar[tuple[tuple[float, str], ...]] = (
        (97.0, "A+"),
        (93.0, "A"),
        (90.0, "A-"),
        (87.0, "B+"),
        (83.0, "B"),
        (80.0, "B-"),
        (77.0, "C+"),
        (73.0, "C"),
        (70.0, "C-"),
        (67.0, "D+"),
        (63.0, "D"),
        (60.0, "D-"),
    )

    FAILING: ClassVar[str] = "F"

    def to_letter(self, percent: float | None) -> str:
        """
        Convert a percentage to a letter grade.

        Args:
            percent: Final percentage, or None when nothing is graded.

        Returns:
            Letter grade; "F" for None or negative input.
        """
        if percent is None or percent < 0:
            return self.FAILING

        for threshold, letter in self.BREAKPOINTS:
            if percent >= threshold:
                return letter
        return self.FAILING


def to_letter(percent: float | None) -> str:
    """Module-level shortcut for ``LetterGradeMapper().to_letter``."""
    return LetterGradeMapper().to_letter(percent)

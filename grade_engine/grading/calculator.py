"""
Weighted final grade calculation.

Combines a student's raw component scores with the course's component
weights. When a course allocates more than 100% in total, every weight is
shrunk proportionally; otherwise weights are used as-is and ungraded
components simply contribute nothing. The result is never renormalized to
the graded subset.
"""

import math
from collections.abc import Iterable, Mapping

from grade_engine.models import GradeComponent


class WeightedGradeCalculator:
    """
    Pure calculator for weighted final percentages.

    The calculation only reads its inputs, so it can be re-run at any time
    to re-derive a record's final grade from the current scores.
    """

    FULL_WEIGHT = 100.0

    def __init__(self, precision: int = 2):
        """
        Initialize the calculator.

        Args:
            precision: Decimal places kept on the final percentage.
        """
        self._precision = precision

    def effective_weights(self, components: Iterable[GradeComponent]) -> dict[str, float]:
        """
        Compute the weight each active component actually carries.

        Args:
            components: Components of one course (inactive ones are skipped).

        Returns:
            Mapping of component id to effective weight in percent.
        """
        active = [c for c in components if c.is_active]
        total_weight = sum(c.weight_percent for c in active)

        return {c.id: self._normalize(c.weight_percent, total_weight) for c in active}

    def calculate(
        self,
        components: Iterable[GradeComponent],
        scores: Mapping[str, float | None],
    ) -> float:
        """
        Calculate a final percentage from component scores.

        Args:
            components: Components of the course.
            scores: Raw scores (0-100) keyed by component id; missing or
                None entries are ungraded.

        Returns:
            Final percentage clamped to [0, 100] and rounded.
        """
        contributions: list[float] = []

        for component_id, weight in self.effective_weights(components).items():
            raw = scores.get(component_id)
            if raw is None:
                continue
            contributions.append(raw * weight / self.FULL_WEIGHT)

        if not contributions:
            return 0.0

        # fsum keeps the total independent of summation order
        percent = math.fsum(contributions)
        percent = max(0.0, min(self.FULL_WEIGHT, percent))
        return round(percent, self._precision)

    def _normalize(self, weight: int, total_weight: int) -> float:
        """Shrink a weight when the course's total allocation exceeds 100%."""
        if total_weight > self.FULL_WEIGHT:
            return weight / total_weight * self.FULL_WEIGHT
        return float(weight)

"""
Grade component validation.

Checks that a component is complete and that its weight keeps the
course's total active allocation within 100%.
"""

from collections.abc import Iterable, Sequence

from grade_engine.errors import GradeValidationError
from grade_engine.models import GradeComponent


class ComponentValidator:
    """
    Validates gradebook components before they are stored.

    Checks:
    1. The component has a name and a course
    2. The weight is a positive percentage no larger than 100
    3. The course's active weights including this one do not exceed 100
    """

    MAX_WEIGHT = 100

    # Maximum total weight of a course's active components
    MAX_TOTAL_WEIGHT = 100

    def validate(
        self,
        component: GradeComponent,
        existing: Sequence[GradeComponent],
    ) -> tuple[bool, list[str]]:
        """
        Validate a new component against the course's existing components.

        Args:
            component: The component to validate.
            existing: Components already stored for the course.

        Returns:
            Tuple of (is_valid, list of issues).
        """
        issues: list[str] = []

        issues.extend(self._validate_structure(component))
        issues.extend(self._validate_weight(component.weight_percent))

        if not issues and not self.weight_fits(
            component.course_id, component.weight_percent, existing, component.id
        ):
            issues.append(
                f"Total percentage would exceed {self.MAX_TOTAL_WEIGHT}% "
                f"(currently allocated: {self.allocated_weight(component.course_id, existing, component.id)}%)"
            )

        return len(issues) == 0, issues

    def validate_or_raise(
        self,
        component: GradeComponent,
        existing: Sequence[GradeComponent],
    ) -> None:
        """
        Validate a component and raise if invalid.

        Raises:
            GradeValidationError: If validation fails.
        """
        is_valid, issues = self.validate(component, existing)
        if not is_valid:
            raise GradeValidationError(issues)

    def weight_fits(
        self,
        course_id: str,
        weight: int | None,
        existing: Iterable[GradeComponent],
        exclude_component_id: str | None = None,
    ) -> bool:
        """
        Check whether a weight can be allocated in a course.

        Args:
            course_id: Course receiving the weight.
            weight: Weight in percent.
            existing: Components already stored for the course.
            exclude_component_id: Component whose current weight is being replaced.

        Returns:
            True if the course's active total stays within 100%.
        """
        if weight is None or weight < 0 or weight > self.MAX_WEIGHT:
            return False

        allocated = self.allocated_weight(course_id, existing, exclude_component_id)
        return allocated + weight <= self.MAX_TOTAL_WEIGHT

    @staticmethod
    def allocated_weight(
        course_id: str,
        existing: Iterable[GradeComponent],
        exclude_component_id: str | None = None,
    ) -> int:
        """Sum the weights of a course's active components."""
        return sum(
            c.weight_percent
            for c in existing
            if c.is_active and c.course_id == course_id and c.id != exclude_component_id
        )

    def _validate_structure(self, component: GradeComponent) -> list[str]:
        issues: list[str] = []

        if not component.name or not component.name.strip():
            issues.append("Grade component name is required")

        if not component.course_id or not component.course_id.strip():
            issues.append("Course ID is required")

        return issues

    def _validate_weight(self, weight: int | None) -> list[str]:
        if weight is None or weight <= 0:
            return ["Valid percentage is required (must be greater than 0)"]
        if weight > self.MAX_WEIGHT:
            return [f"Percentage cannot exceed {self.MAX_WEIGHT}, got: {weight}"]
        return []

"""
Exam to gradebook synchronization.

Each assessment owns at most one active gradebook component, looked up by
``(course_id, linked_assessment_id)``. Every step here can be re-run
safely: create returns the existing component, update only saves real
changes and push overwrites the same score key.
"""

from grade_engine.errors import GradeEngineError, SyncFailure
from grade_engine.gradebook.service import Gradebook
from grade_engine.logging_utils import create_logger
from grade_engine.models import (
    Assessment,
    AssessmentResponse,
    GradeComponent,
    ResponseStatus,
    StudentCourseGrade,
)
from grade_engine.stores.protocols import ComponentStore

logger = create_logger("grade_engine.sync")


# Default share of the final grade for a component created from an assessment
DEFAULT_TYPE_WEIGHTS: dict[str, int] = {
    "homework": 10,
    "assignment": 15,
    "project": 25,
    "essay": 15,
    "lab": 10,
    "presentation": 15,
    "quiz": 5,
    "midterm": 15,
    "exam": 20,
    "final": 20,
    "participation": 5,
}

DEFAULT_WEIGHT = 10

# Max points used when an assessment has no questions yet
FALLBACK_MAX_POINTS = 100


def suggested_weight(assessment_type: str | None) -> int:
    """Default component weight for an assessment type tag."""
    if not assessment_type:
        return DEFAULT_WEIGHT
    return DEFAULT_TYPE_WEIGHTS.get(assessment_type.strip().lower(), DEFAULT_WEIGHT)


class ExamGradeSynchronizer:
    """
    Keeps an assessment's gradebook component in lockstep with the assessment.
    """

    def __init__(self, gradebook: Gradebook, components: ComponentStore):
        self._gradebook = gradebook
        self._components = components

    def linked_component(self, assessment: Assessment) -> GradeComponent | None:
        """Return the active component linked to an assessment, if any."""
        for component in self._components.find_linked(assessment.course_id, assessment.id):
            if component.is_active:
                return component
        return None

    def create_component(self, assessment: Assessment) -> GradeComponent:
        """
        Create the gradebook component for a new assessment.

        The type's default weight is shrunk to whatever the course has left
        (never below 1). Returns the existing component if there is one.
        """
        existing = self.linked_component(assessment)
        if existing is not None:
            logger.debug(
                "Linked grade component already exists",
                assessment_id=assessment.id,
                component_id=existing.id,
            )
            return existing

        weight = suggested_weight(assessment.type)
        current_total = self._gradebook.active_weight_total(assessment.course_id)
        if current_total + weight > 100:
            weight = max(1, 100 - current_total)

        component = GradeComponent(
            course_id=assessment.course_id,
            name=assessment.title,
            type=assessment.type or "exam",
            weight_percent=weight,
            max_points=assessment.total_points or FALLBACK_MAX_POINTS,
            linked_assessment_id=assessment.id,
            auto_created=True,
            description=f"Auto-created grade column for exam: {assessment.title}",
        )
        return self._gradebook.register_component(component)

    def update_component(self, assessment: Assessment) -> GradeComponent | None:
        """
        Propagate title and point total changes to the linked component.

        Returns:
            The linked component, or None if the assessment has none.
        """
        component = self.linked_component(assessment)
        if component is None:
            logger.warning(
                "No grade component linked to assessment",
                assessment_id=assessment.id,
                course_id=assessment.course_id,
            )
            return None

        max_points = assessment.total_points or FALLBACK_MAX_POINTS
        changed = False

        if component.name != assessment.title:
            component.name = assessment.title
            changed = True
        if component.max_points != max_points:
            component.max_points = max_points
            changed = True

        if changed:
            component = self._gradebook.save_component(component)
            logger.info(
                "Linked grade component updated",
                assessment_id=assessment.id,
                component_id=component.id,
            )
        return component

    def delete_components(self, assessment: Assessment) -> list[str]:
        """
        Delete every component linked to an assessment.

        Returns:
            Ids of the deleted components.
        """
        removed: list[str] = []
        for component in self._components.find_linked(assessment.course_id, assessment.id):
            self._gradebook.delete_component(component.id)
            removed.append(component.id)
        return removed

    def push(self, assessment: Assessment, response: AssessmentResponse) -> StudentCourseGrade:
        """
        Write a fully graded response's percentage into the student's record.

        Raises:
            SyncFailure: If the response is not graded, the assessment has no
                linked component, or the gradebook rejects the write.
        """
        if response.status != ResponseStatus.GRADED:
            raise SyncFailure(
                f"Response {response.id} is not fully graded (status: {response.status.value})",
                assessment.id,
                response.student_id,
            )

        component = self.linked_component(assessment)
        if component is None:
            raise SyncFailure(
                f"No grade component linked to assessment: {assessment.id}",
                assessment.id,
                response.student_id,
            )

        max_points = assessment.total_points or FALLBACK_MAX_POINTS
        if component.max_points != max_points:
            component.max_points = max_points
            self._gradebook.save_component(component)

        try:
            record = self._gradebook.update_component_score(
                response.student_id, component.id, response.percent
            )
        except GradeEngineError as e:
            raise SyncFailure(str(e), assessment.id, response.student_id) from e

        logger.info(
            "Exam grade pushed to gradebook",
            assessment_id=assessment.id,
            student_id=response.student_id,
            component_id=component.id,
            percent=response.percent,
        )
        return record

"""
Store contracts consumed by the grade engine.

The engine never talks to a database directly; embedding applications
provide objects satisfying these protocols. Lookups by id return ``None``
for a missing entity and the engine decides whether that is an error.
"""

from __future__ import annotations

from typing import Protocol

from grade_engine.models import (
    Assessment,
    AssessmentResponse,
    GradeComponent,
    StudentCourseGrade,
)

__all__ = [
    "AssessmentStore",
    "ComponentStore",
    "GradeRecordStore",
    "ResponseStore",
]


class ComponentStore(Protocol):
    """Persistence for gradebook components."""

    def get(self, component_id: str) -> GradeComponent | None:
        """Return the component with the given id, if any."""
        ...

    def find_active_by_course(self, course_id: str) -> list[GradeComponent]:
        """Return the active components of a course ordered by display order."""
        ...

    def find_by_course(self, course_id: str) -> list[GradeComponent]:
        """Return every component of a course, active or not."""
        ...

    def find_linked(self, course_id: str, assessment_id: str) -> list[GradeComponent]:
        """Return the components linked to an assessment."""
        ...

    def save(self, component: GradeComponent) -> GradeComponent:
        """Insert or replace a component."""
        ...

    def delete(self, component_id: str) -> None:
        """Remove a component."""
        ...


class GradeRecordStore(Protocol):
    """
    Persistence for per-student course grade records.

    ``find_all_by_student_and_course`` may legitimately return more than
    one record; the engine reconciles them.
    """

    def find_all_by_student_and_course(
        self, student_id: str, course_id: str
    ) -> list[StudentCourseGrade]:
        """Return every record stored for a student in a course."""
        ...

    def find_by_course(self, course_id: str) -> list[StudentCourseGrade]:
        """Return every record of a course."""
        ...

    def save(self, record: StudentCourseGrade) -> StudentCourseGrade:
        """Insert or replace a record."""
        ...

    def delete(self, record_id: str) -> None:
        """Remove one record."""
        ...

    def delete_by_student_and_course(self, student_id: str, course_id: str) -> int:
        """Remove every record of a student in a course, returning the count."""
        ...


class AssessmentStore(Protocol):
    """Persistence for assessments."""

    def get(self, assessment_id: str) -> Assessment | None:
        """Return the assessment with the given id, if any."""
        ...

    def save(self, assessment: Assessment) -> Assessment:
        """Insert or replace an assessment."""
        ...

    def delete(self, assessment_id: str) -> None:
        """Remove an assessment."""
        ...


class ResponseStore(Protocol):
    """Persistence for assessment responses."""

    def get(self, response_id: str) -> AssessmentResponse | None:
        """Return the response with the given id, if any."""
        ...

    def find_by_assessment(self, assessment_id: str) -> list[AssessmentResponse]:
        """Return every response to an assessment."""
        ...

    def save(self, response: AssessmentResponse) -> AssessmentResponse:
        """Insert or replace a response."""
        ...

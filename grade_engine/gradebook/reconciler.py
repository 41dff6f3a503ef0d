"""
Duplicate grade record reconciliation.

The record store may hold several records for one student in one course.
This module is the single place where they are collapsed into one.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from grade_engine.errors import GradeValidationError
from grade_engine.grading.calculator import WeightedGradeCalculator
from grade_engine.grading.letters import LetterGradeMapper
from grade_engine.logging_utils import create_logger
from grade_engine.models import StudentCourseGrade, utcnow
from grade_engine.stores.protocols import ComponentStore, GradeRecordStore

logger = create_logger("grade_engine.reconciler")


class DuplicateReconciler:
    """
    Merges duplicate records of one student in one course.

    The most recently updated record becomes the survivor. Every component
    score is taken from the newest record that defines it, the survivor's
    own scores winning ties.
    """

    def __init__(
        self,
        components: ComponentStore,
        records: GradeRecordStore,
        calculator: WeightedGradeCalculator | None = None,
        letters: LetterGradeMapper | None = None,
    ):
        self._components = components
        self._records = records
        self._calculator = calculator or WeightedGradeCalculator()
        self._letters = letters or LetterGradeMapper()

    def reconcile(self, candidates: Sequence[StudentCourseGrade]) -> StudentCourseGrade:
        """
        Collapse candidate records into one persisted record.

        Args:
            candidates: Records sharing one (student, course) pair.

        Returns:
            The surviving record. A single candidate is returned unchanged.

        Raises:
            GradeValidationError: If there are no candidates or they belong
                to different students or courses.
        """
        if not candidates:
            raise GradeValidationError("No records to reconcile")

        keys = {(r.student_id, r.course_id) for r in candidates}
        if len(keys) > 1:
            raise GradeValidationError(
                f"Cannot reconcile records of different students or courses: {sorted(keys)}"
            )

        if len(candidates) == 1:
            return candidates[0]

        merged = self.merge(candidates)
        student_id, course_id = merged.student_id, merged.course_id

        for record in candidates:
            if record.id != merged.id:
                self._records.delete(record.id)

        components = self._components.find_active_by_course(course_id)
        merged.final_percent = self._calculator.calculate(components, merged.scores)
        merged.final_letter = self._letters.to_letter(merged.final_percent)
        merged.updated_at = utcnow()
        self._records.save(merged)

        logger.info(
            "Duplicate grade records merged",
            student_id=student_id,
            course_id=course_id,
            merged_count=len(candidates),
            surviving_record_id=merged.id,
        )
        return merged

    def merge(self, candidates: Sequence[StudentCourseGrade]) -> StudentCourseGrade:
        """
        Build the merged record without touching the store.

        Returns:
            A copy of the newest candidate carrying the merged score map.
        """
        ordered = self.order(candidates)
        base = ordered[0].model_copy(deep=True)

        scores: dict[str, float] = {}
        # Oldest first so newer records overwrite; the base is applied last.
        for record in reversed(ordered):
            scores.update({k: v for k, v in record.scores.items() if v is not None})

        base.scores = scores
        return base

    @staticmethod
    def order(candidates: Sequence[StudentCourseGrade]) -> list[StudentCourseGrade]:
        """Sort records newest first, undated records last."""

        def sort_key(record: StudentCourseGrade) -> tuple[bool, datetime]:
            if record.updated_at is None:
                return (False, datetime.min.replace(tzinfo=timezone.utc))
            stamp = record.updated_at
            if stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=timezone.utc)
            return (True, stamp)

        return sorted(candidates, key=sort_key, reverse=True)

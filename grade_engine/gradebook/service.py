"""
Gradebook service.

Owns grade components and per-student course grade records: component
CRUD with weight validation, atomic score writes, final grade derivation
and course-wide maintenance (recompute, duplicate and orphan cleanup).
"""

import threading
import weakref

from grade_engine.batch import run_batch
from grade_engine.config import Settings, get_settings
from grade_engine.errors import GradeValidationError, NotFoundError
from grade_engine.gradebook.reconciler import DuplicateReconciler
from grade_engine.gradebook.validator import ComponentValidator
from grade_engine.grading.calculator import WeightedGradeCalculator
from grade_engine.grading.letters import LetterGradeMapper
from grade_engine.logging_utils import create_logger
from grade_engine.models import (
    BatchResult,
    ComponentPatch,
    GradeComponent,
    StudentCourseGrade,
    utcnow,
)
from grade_engine.stores.protocols import ComponentStore, GradeRecordStore

logger = create_logger("grade_engine.gradebook")


class Gradebook:
    """
    Component and grade record service for all courses.

    Writing one component score for one student is a single
    read-modify-write unit serialized per (student, course). The final
    grade is always recomputed from the freshly read score map.
    """

    MIN_SCORE = 0.0
    MAX_SCORE = 100.0

    def __init__(
        self,
        components: ComponentStore,
        records: GradeRecordStore,
        settings: Settings | None = None,
        calculator: WeightedGradeCalculator | None = None,
        letters: LetterGradeMapper | None = None,
    ):
        """
        Initialize the gradebook.

        Args:
            components: Component store.
            records: Grade record store.
            settings: Configuration settings. Uses global settings if not provided.
            calculator: Final grade calculator.
            letters: Letter grade mapper.
        """
        self._settings = settings or get_settings()
        self._components = components
        self._records = records
        self._calculator = calculator or WeightedGradeCalculator(self._settings.score_precision)
        self._letters = letters or LetterGradeMapper()
        self._validator = ComponentValidator()
        self._reconciler = DuplicateReconciler(
            components, records, self._calculator, self._letters
        )

        self._locks: weakref.WeakValueDictionary[tuple[str, str], threading.RLock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    # ==========================================================================
    # Components
    # ==========================================================================

    def get_component(self, component_id: str) -> GradeComponent:
        """
        Fetch a component.

        Raises:
            NotFoundError: If no component has the given id.
        """
        component = self._components.get(component_id)
        if component is None:
            raise NotFoundError("Grade component", component_id)
        return component

    def active_components(self, course_id: str) -> list[GradeComponent]:
        return self._components.find_active_by_course(course_id)

    def active_weight_total(self, course_id: str) -> int:
        return ComponentValidator.allocated_weight(course_id, self.active_components(course_id))

    def next_display_order(self, course_id: str) -> int:
        orders = [c.display_order for c in self._components.find_by_course(course_id)]
        return max(orders, default=0) + 1

    def validate_component_weight(
        self, course_id: str, weight: int | None, exclude_component_id: str | None = None
    ) -> bool:
        """Check whether ``weight`` fits in the course's remaining allocation."""
        return self._validator.weight_fits(
            course_id, weight, self.active_components(course_id), exclude_component_id
        )

    def create_component(self, component: GradeComponent) -> GradeComponent:
        """
        Validate and store a new component, then recompute the course.

        Raises:
            GradeValidationError: If the component is incomplete or its
                weight would push the course above 100%.
        """
        self._validator.validate_or_raise(component, self.active_components(component.course_id))

        component = component.model_copy(deep=True)
        component.name = component.name.strip()
        if not component.type or not component.type.strip():
            component.type = "assignment"

        return self.register_component(component)

    def register_component(self, component: GradeComponent) -> GradeComponent:
        """
        Store a component without weight validation and recompute the course.

        Used for components whose weight was already capped by the caller.
        """
        if component.display_order <= 0:
            component.display_order = self.next_display_order(component.course_id)

        saved = self._components.save(component)
        logger.info(
            "Grade component created",
            component_id=saved.id,
            course_id=saved.course_id,
            weight_percent=saved.weight_percent,
            linked_assessment_id=saved.linked_assessment_id,
        )

        self.recalculate_course(saved.course_id)
        return saved

    def save_component(self, component: GradeComponent) -> GradeComponent:
        """Persist cosmetic component changes (name, max points) as-is."""
        return self._components.save(component)

    def update_component(self, component_id: str, patch: ComponentPatch) -> GradeComponent:
        """
        Apply a partial update to a component and recompute the course.

        Raises:
            NotFoundError: If the component does not exist.
            GradeValidationError: If the new weight would push the course
                above 100%.
        """
        component = self.get_component(component_id)

        if patch.weight_percent is not None and not self.validate_component_weight(
            component.course_id, patch.weight_percent, component_id
        ):
            raise GradeValidationError("Total percentage would exceed 100%")

        if patch.name is not None and patch.name.strip():
            component.name = patch.name.strip()
        if patch.type is not None and patch.type.strip():
            component.type = patch.type.strip()
        if patch.weight_percent is not None and patch.weight_percent > 0:
            component.weight_percent = patch.weight_percent
        if patch.max_points is not None and patch.max_points > 0:
            component.max_points = patch.max_points
        if patch.description is not None:
            component.description = patch.description
        if patch.is_active is not None:
            component.is_active = patch.is_active

        saved = self._components.save(component)
        logger.info("Grade component updated", component_id=component_id)

        self.recalculate_course(saved.course_id)
        return saved

    def delete_component(self, component_id: str) -> GradeComponent:
        """
        Delete a component, strip its scores from every record and recompute.

        Raises:
            NotFoundError: If the component does not exist.
        """
        component = self.get_component(component_id)

        stripped = self.remove_component_scores(component.course_id, component_id)
        self._components.delete(component_id)
        logger.info(
            "Grade component deleted",
            component_id=component_id,
            course_id=component.course_id,
            records_stripped=stripped,
        )

        self.recalculate_course(component.course_id)
        return component

    def remove_component_scores(self, course_id: str, component_id: str) -> int:
        """Strip one component's key from every record of a course."""
        stripped = 0
        for student_id in self._student_ids(course_id):
            with self._record_lock(student_id, course_id):
                for record in self._records.find_all_by_student_and_course(student_id, course_id):
                    if record.remove_score(component_id):
                        record.updated_at = utcnow()
                        self._records.save(record)
                        stripped += 1
        return stripped

    # ==========================================================================
    # Grade Records
    # ==========================================================================

    def course_grades(self, course_id: str) -> list[StudentCourseGrade]:
        return self._records.find_by_course(course_id)

    def find_or_create_record(self, student_id: str, course_id: str) -> StudentCourseGrade:
        """
        Return the single live record of a student in a course.

        Duplicates are reconciled first. A missing record is created in
        memory only; it is persisted by the first write.
        """
        existing = self._records.find_all_by_student_and_course(student_id, course_id)

        if not existing:
            return StudentCourseGrade(student_id=student_id, course_id=course_id)
        if len(existing) == 1:
            return existing[0]
        return self._reconciler.reconcile(existing)

    def update_component_score(
        self, student_id: str, component_id: str, score: float | None
    ) -> StudentCourseGrade:
        """
        Enter, replace or clear (``None``) one component score for a student.

        Raises:
            NotFoundError: If the component does not exist.
            GradeValidationError: If the component is inactive or the score
                is outside [0, 100].
        """
        component = self.get_component(component_id)

        if not component.is_active:
            raise GradeValidationError(f"Cannot update grade for inactive component: {component_id}")

        if score is not None and not self.MIN_SCORE <= score <= self.MAX_SCORE:
            raise GradeValidationError(f"Grade must be between 0 and 100, got: {score}")

        course_id = component.course_id
        with self._record_lock(student_id, course_id):
            record = self.find_or_create_record(student_id, course_id)

            if score is None:
                record.remove_score(component_id)
            else:
                record.set_score(component_id, score)

            self._refresh(record)
            record.updated_at = utcnow()
            saved = self._records.save(record)

        logger.info(
            "Component score updated",
            student_id=student_id,
            course_id=course_id,
            component_id=component_id,
            score=score,
            final_percent=saved.final_percent,
        )
        return saved

    def calculate_final_grade(self, student_id: str, course_id: str) -> float:
        """
        Calculate a student's final percentage from the stored scores.

        Returns 0 for a student with no record; no record is created.
        """
        with self._record_lock(student_id, course_id):
            existing = self._records.find_all_by_student_and_course(student_id, course_id)
            if not existing:
                return 0.0
            record = existing[0] if len(existing) == 1 else self._reconciler.reconcile(existing)

        return self._calculator.calculate(self.active_components(course_id), record.scores)

    def recalculate_student(self, student_id: str, course_id: str) -> StudentCourseGrade:
        """Re-derive and persist one student's final grade if it changed."""
        with self._record_lock(student_id, course_id):
            record = self.find_or_create_record(student_id, course_id)
            if self._refresh(record):
                record.updated_at = utcnow()
                record = self._records.save(record)
        return record

    def recalculate_course(self, course_id: str) -> BatchResult:
        """
        Recompute every student's final grade in a course.

        Each student is an independent unit; a failure is recorded in the
        result without stopping the others.
        """

        def recalculate(student_id: str) -> str | None:
            return self.recalculate_student(student_id, course_id).final_letter

        return run_batch(
            self._student_ids(course_id),
            recalculate,
            operation="recalculate_course",
            max_workers=self._settings.batch_max_workers,
        )

    def cleanup_duplicates_for_course(self, course_id: str) -> int:
        """Reconcile every student holding more than one record. Returns students merged."""
        merged = 0
        for student_id in self._student_ids(course_id):
            with self._record_lock(student_id, course_id):
                records = self._records.find_all_by_student_and_course(student_id, course_id)
                if len(records) > 1:
                    self._reconciler.reconcile(records)
                    merged += 1
        return merged

    def cleanup_orphaned_scores(self, course_id: str) -> int:
        """
        Drop scores that reference no active component of the course.

        Returns:
            Number of records cleaned.
        """
        valid_ids = {c.id for c in self.active_components(course_id)}
        cleaned = 0

        for student_id in self._student_ids(course_id):
            with self._record_lock(student_id, course_id):
                for record in self._records.find_all_by_student_and_course(student_id, course_id):
                    orphaned = [key for key in record.scores if key not in valid_ids]
                    if not orphaned:
                        continue

                    for key in orphaned:
                        record.remove_score(key)
                    self._refresh(record)
                    record.updated_at = utcnow()
                    self._records.save(record)
                    cleaned += 1

                    logger.info(
                        "Orphaned scores removed",
                        student_id=student_id,
                        course_id=course_id,
                        component_ids=orphaned,
                    )
        return cleaned

    def delete_student_grades(self, student_id: str, course_id: str) -> int:
        with self._record_lock(student_id, course_id):
            return self._records.delete_by_student_and_course(student_id, course_id)

    def letter_grade(self, percent: float | None) -> str:
        return self._letters.to_letter(percent)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _student_ids(self, course_id: str) -> list[str]:
        """Students holding at least one record in a course, sorted."""
        return sorted({r.student_id for r in self._records.find_by_course(course_id)})

    def _refresh(self, record: StudentCourseGrade) -> bool:
        """Re-derive a record's final fields. Returns whether they changed."""
        percent = self._calculator.calculate(self.active_components(record.course_id), record.scores)
        letter = self._letters.to_letter(percent)

        changed = record.final_percent != percent or record.final_letter != letter
        record.final_percent = percent
        record.final_letter = letter
        return changed

    def _record_lock(self, student_id: str, course_id: str) -> threading.RLock:
        """
        Return the lock serializing writes to one student's course record.

        Locks are held weakly and disappear once no caller is using them.
        """
        key = (student_id, course_id)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

"""
Grade engine facade.

Single entry point for embedding applications. Raw score payloads are
normalized here, every mutation triggers the recomputation it needs, and
exam grading is followed by a push into the linked gradebook component.
"""

from collections.abc import Mapping
from typing import Any

from grade_engine.batch import run_batch
from grade_engine.config import Settings, get_settings
from grade_engine.errors import NotFoundError, SyncFailure
from grade_engine.gradebook.service import Gradebook
from grade_engine.gradebook.sync import ExamGradeSynchronizer
from grade_engine.grading.autograder import QuestionAutoGrader
from grade_engine.grading.scorer import ExamResponseScorer
from grade_engine.logging_utils import create_logger
from grade_engine.models import (
    Assessment,
    AssessmentResponse,
    AssessmentStats,
    BatchResult,
    ComponentPatch,
    GradeComponent,
    ResponseStatus,
    StudentCourseGrade,
)
from grade_engine.normalize import (
    normalize_component_score,
    normalize_question_score,
    require_id,
)
from grade_engine.stores.memory import InMemoryStores
from grade_engine.stores.protocols import (
    AssessmentStore,
    ComponentStore,
    GradeRecordStore,
    ResponseStore,
)

logger = create_logger("grade_engine.engine")


class GradeEngine:
    """
    Orchestrates gradebook maintenance and exam grading.

    Usage:
        stores = InMemoryStores()
        engine = GradeEngine.from_stores(stores)
        engine.update_component_score("student-1", component.id, "87.5")
        engine.calculate_final_grade("student-1", "course-1")
    """

    def __init__(
        self,
        components: ComponentStore,
        records: GradeRecordStore,
        assessments: AssessmentStore,
        responses: ResponseStore,
        settings: Settings | None = None,
    ):
        """
        Initialize the engine.

        Args:
            components: Component store.
            records: Grade record store.
            assessments: Assessment store.
            responses: Response store.
            settings: Configuration settings. Uses global settings if not provided.
        """
        self.settings = settings or get_settings()
        self._assessments = assessments
        self._responses = responses

        self.gradebook = Gradebook(components, records, self.settings)
        self.sync = ExamGradeSynchronizer(self.gradebook, components)
        self.scorer = ExamResponseScorer(QuestionAutoGrader(), self.settings)

    @classmethod
    def from_stores(cls, stores: InMemoryStores, settings: Settings | None = None) -> "GradeEngine":
        """Build an engine over a bundle of in-memory stores."""
        return cls(
            stores.components,
            stores.records,
            stores.assessments,
            stores.responses,
            settings,
        )

    # ==========================================================================
    # Gradebook Operations
    # ==========================================================================

    def update_component_score(
        self, student_id: str, component_id: str, score: Any
    ) -> StudentCourseGrade:
        """
        Enter, replace or clear one component score for a student.

        Args:
            student_id: Student receiving the score.
            component_id: Component being scored.
            score: Number or numeric string in [0, 100]; None or blank clears it.

        Returns:
            The updated grade record.

        Raises:
            GradeValidationError: If an id is missing or the score is invalid.
            NotFoundError: If the component does not exist.
        """
        student_id = require_id(student_id, "Student ID")
        component_id = require_id(component_id, "Grade component ID")
        return self.gradebook.update_component_score(
            student_id, component_id, normalize_component_score(score)
        )

    def calculate_final_grade(self, student_id: str, course_id: str) -> float:
        return self.gradebook.calculate_final_grade(
            require_id(student_id, "Student ID"), require_id(course_id, "Course ID")
        )

    def recalculate_course(self, course_id: str) -> BatchResult:
        course_id = require_id(course_id, "Course ID")
        result = self.gradebook.recalculate_course(course_id)
        logger.info(
            "Course grades recalculated",
            course_id=course_id,
            students=result.total,
            failed=result.failed,
        )
        return result

    def create_component(self, component: GradeComponent) -> GradeComponent:
        return self.gradebook.create_component(component)

    def update_component(self, component_id: str, patch: ComponentPatch) -> GradeComponent:
        return self.gradebook.update_component(require_id(component_id, "Grade component ID"), patch)

    def delete_component(self, component_id: str) -> GradeComponent:
        return self.gradebook.delete_component(require_id(component_id, "Grade component ID"))

    def course_grades(self, course_id: str) -> list[StudentCourseGrade]:
        return self.gradebook.course_grades(require_id(course_id, "Course ID"))

    def cleanup_course(self, course_id: str) -> dict[str, int]:
        """
        Merge duplicate records, drop orphaned scores and recompute a course.

        Returns:
            Counts of merged students, cleaned records and recomputed students.
        """
        course_id = require_id(course_id, "Course ID")

        merged = self.gradebook.cleanup_duplicates_for_course(course_id)
        cleaned = self.gradebook.cleanup_orphaned_scores(course_id)
        result = self.gradebook.recalculate_course(course_id)

        summary = {
            "duplicates_merged": merged,
            "records_cleaned": cleaned,
            "students_recalculated": result.succeeded,
        }
        logger.info("Course cleanup completed", course_id=course_id, **summary)
        return summary

    def delete_student_grades(self, student_id: str, course_id: str) -> int:
        removed = self.gradebook.delete_student_grades(
            require_id(student_id, "Student ID"), require_id(course_id, "Course ID")
        )
        logger.info(
            "Student grades deleted",
            student_id=student_id,
            course_id=course_id,
            records_removed=removed,
        )
        return removed

    def letter_grade(self, percent: float | None) -> str:
        return self.gradebook.letter_grade(percent)

    # ==========================================================================
    # Assessment Lifecycle
    # ==========================================================================

    def create_assessment(self, assessment: Assessment) -> GradeComponent:
        """
        Store an assessment and create its linked gradebook component.

        Returns:
            The linked component (the existing one when re-run).
        """
        self._assessments.save(assessment)
        return self.sync.create_component(assessment)

    def update_assessment(self, assessment: Assessment) -> GradeComponent | None:
        """
        Store a changed assessment and mirror its title and points.

        Raises:
            NotFoundError: If the assessment was never created.
        """
        self._get_assessment(assessment.id)
        self._assessments.save(assessment)
        return self.sync.update_component(assessment)

    def delete_assessment(self, assessment_id: str) -> list[str]:
        """
        Delete an assessment and its linked components.

        Returns:
            Ids of the deleted components.
        """
        assessment = self._get_assessment(assessment_id)
        removed = self.sync.delete_components(assessment)
        self._assessments.delete(assessment.id)
        logger.info(
            "Assessment deleted",
            assessment_id=assessment.id,
            components_removed=len(removed),
        )
        return removed

    # ==========================================================================
    # Exam Grading
    # ==========================================================================

    def auto_grade_response(self, response_id: str) -> AssessmentResponse:
        """
        Auto-grade one response and push a final result into the gradebook.

        Raises:
            NotFoundError: If the response or its assessment does not exist.
        """
        response = self._get_response(response_id)
        assessment = self._get_assessment(response.assessment_id)

        graded = self._responses.save(self.scorer.score(assessment, response))
        logger.info(
            "Response auto-graded",
            response_id=graded.id,
            assessment_id=assessment.id,
            status=graded.status.value,
            percent=graded.percent,
        )

        self._sync_grade(assessment, graded)
        return graded

    def auto_grade_all_for_assessment(self, assessment_id: str) -> BatchResult:
        """
        Auto-grade every submitted response of an assessment that is not graded yet.

        A response that cannot be graded is saved as AUTO_GRADE_FAILED and
        reported in the result; the remaining responses are still processed.

        Raises:
            NotFoundError: If the assessment does not exist.
        """
        assessment = self._get_assessment(assessment_id)
        pending = [r.id for r in self._responses.find_by_assessment(assessment.id) if r.needs_grading]

        def grade(response_id: str) -> str:
            try:
                return self.auto_grade_response(response_id).status.value
            except Exception as e:
                self._mark_auto_grade_failed(response_id, e)
                raise

        result = run_batch(
            pending,
            grade,
            operation="auto_grade_all_for_assessment",
            max_workers=self.settings.batch_max_workers,
        )
        logger.info(
            "Assessment auto-grading completed",
            assessment_id=assessment.id,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    def grade_question_manually(
        self,
        response_id: str,
        question_id: str,
        score: Any,
        feedback: str | None = None,
    ) -> AssessmentResponse:
        """
        Record a grader's score for one question of a response.

        Raises:
            GradeValidationError: If the score is not whole or out of range.
            NotFoundError: If the response, assessment or question does not exist.
        """
        points = normalize_question_score(score)
        response = self._get_response(response_id)
        assessment = self._get_assessment(response.assessment_id)

        updated = self.scorer.apply_manual_score(assessment, response, question_id, points, feedback)
        updated = self._responses.save(updated)
        logger.info(
            "Question graded manually",
            response_id=updated.id,
            question_id=question_id,
            score=points,
            status=updated.status.value,
        )

        self._sync_grade(assessment, updated)
        return updated

    def grade_response(
        self,
        response_id: str,
        scores: Mapping[str, Any],
        feedback: str | None = None,
    ) -> AssessmentResponse:
        """
        Record a grader's scores for several questions of a response at once.

        Raises:
            GradeValidationError: If any score is invalid; nothing is applied.
            NotFoundError: If the response, assessment or a question does not exist.
        """
        points = {qid: normalize_question_score(value) for qid, value in scores.items()}
        response = self._get_response(response_id)
        assessment = self._get_assessment(response.assessment_id)

        updated = self._responses.save(
            self.scorer.apply_manual_scores(assessment, response, points, feedback)
        )
        logger.info(
            "Response graded manually",
            response_id=updated.id,
            questions=len(points),
            status=updated.status.value,
        )

        self._sync_grade(assessment, updated)
        return updated

    def assessment_stats(self, assessment_id: str) -> AssessmentStats:
        """Count grading progress over every response of an assessment."""
        assessment = self._get_assessment(assessment_id)
        responses = self._responses.find_by_assessment(assessment.id)

        graded = [r for r in responses if r.graded]
        auto_graded = sum(1 for r in graded if r.auto_graded)
        total = len(responses)

        return AssessmentStats(
            assessment_id=assessment.id,
            total_responses=total,
            graded_responses=len(graded),
            auto_graded_responses=auto_graded,
            manually_graded_responses=len(graded) - auto_graded,
            needs_grading=sum(1 for r in responses if r.needs_grading),
            passed_responses=sum(1 for r in responses if r.passed),
            in_progress_responses=sum(1 for r in responses if r.status == ResponseStatus.IN_PROGRESS),
            submitted_responses=sum(1 for r in responses if r.status == ResponseStatus.SUBMITTED),
            failed_auto_grading=sum(
                1 for r in responses if r.status == ResponseStatus.AUTO_GRADE_FAILED
            ),
            grading_progress=round(len(graded) * 100.0 / total, 2) if total else 0.0,
        )

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _sync_grade(self, assessment: Assessment, response: AssessmentResponse) -> None:
        if response.status != ResponseStatus.GRADED:
            return
        try:
            self.sync.push(assessment, response)
        except SyncFailure as e:
            logger.warning(
                "Exam grade sync failed",
                assessment_id=e.assessment_id,
                student_id=e.student_id,
                error=str(e),
            )

    def _mark_auto_grade_failed(self, response_id: str, error: Exception) -> None:
        response = self._responses.get(response_id)
        if response is None:
            return
        response.status = ResponseStatus.AUTO_GRADE_FAILED
        response.instructor_feedback = f"Auto-grading failed: {error}"
        self._responses.save(response)

    def _get_assessment(self, assessment_id: str) -> Assessment:
        assessment = self._assessments.get(require_id(assessment_id, "Assessment ID"))
        if assessment is None:
            raise NotFoundError("Assessment", assessment_id)
        return assessment

    def _get_response(self, response_id: str) -> AssessmentResponse:
        response = self._responses.get(require_id(response_id, "Response ID"))
        if response is None:
            raise NotFoundError("Response", response_id)
        return response

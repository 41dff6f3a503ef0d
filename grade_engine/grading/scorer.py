"""
Response scorer for assessment attempts.

Applies auto-grading to every eligible question of a response, accepts
manual scores for the rest, and derives the response totals, percentage,
grading status and pass flag from the per-question scores.
"""

from collections.abc import Mapping

from grade_engine.config import Settings, get_settings
from grade_engine.errors import GradeValidationError, NotFoundError
from grade_engine.grading.autograder import QuestionAutoGrader
from grade_engine.models import (
    Assessment,
    AssessmentQuestion,
    AssessmentResponse,
    ResponseStatus,
    utcnow,
)


class ExamResponseScorer:
    """
    Scores assessment responses.

    Every method returns a new response; the input model is left untouched.
    A response becomes GRADED only once every question of the assessment
    holds a score.
    """

    def __init__(
        self,
        grader: QuestionAutoGrader | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the scorer.

        Args:
            grader: Question grader. A default one is created if not provided.
            settings: Configuration settings. Uses global settings if not provided.
        """
        self._settings = settings or get_settings()
        self._grader = grader or QuestionAutoGrader()

    def score(self, exam: Assessment, response: AssessmentResponse) -> AssessmentResponse:
        """
        Auto-grade a response.

        Auto-gradable questions are (re)scored from the submitted answers.
        Questions needing a human keep whatever manual score they already have.

        Args:
            exam: The assessment the response answers.
            response: The student's response.

        Returns:
            Updated response with scores, totals and status recomputed.
        """
        updated = response.model_copy(deep=True)

        scores = dict(updated.question_scores)
        for question in exam.questions:
            if self._grader.can_auto_grade(question):
                scores[question.id] = self._grader.grade(question, updated.answers.get(question.id))

        updated.question_scores = scores
        updated.auto_graded = True
        updated.graded_at = utcnow()

        return self.recalculate(exam, updated)

    def apply_manual_score(
        self,
        exam: Assessment,
        response: AssessmentResponse,
        question_id: str,
        score: int,
        feedback: str | None = None,
    ) -> AssessmentResponse:
        """
        Record a grader's score for one question.

        Other question scores are not touched; only the totals and status
        are recomputed.

        Raises:
            NotFoundError: If the question is not part of the assessment.
            GradeValidationError: If the score is outside [0, question points].
        """
        question = exam.get_question(question_id)
        if question is None:
            raise NotFoundError("Question", question_id)

        self._validate_points(question, score)

        updated = response.model_copy(deep=True)
        updated.question_scores[question_id] = score
        if feedback is not None:
            updated.question_feedback[question_id] = feedback
        updated.graded_at = utcnow()

        return self.recalculate(exam, updated)

    def apply_manual_scores(
        self,
        exam: Assessment,
        response: AssessmentResponse,
        scores: Mapping[str, int],
        feedback: str | None = None,
    ) -> AssessmentResponse:
        """
        Record a grader's scores for several questions at once.

        All scores are validated before any is applied.

        Raises:
            NotFoundError: If a question is not part of the assessment.
            GradeValidationError: If any score is out of range.
        """
        errors: list[str] = []
        for question_id, score in scores.items():
            question = exam.get_question(question_id)
            if question is None:
                raise NotFoundError("Question", question_id)
            try:
                self._validate_points(question, score)
            except GradeValidationError as e:
                errors.extend(e.errors)

        if errors:
            raise GradeValidationError(errors)

        updated = response.model_copy(deep=True)
        updated.question_scores.update(scores)
        updated.auto_graded = False
        updated.graded_at = utcnow()
        if feedback is not None:
            updated.instructor_feedback = feedback

        return self.recalculate(exam, updated)

    def recalculate(self, exam: Assessment, response: AssessmentResponse) -> AssessmentResponse:
        """
        Derive totals, percentage, status and pass flag from question scores.

        Scores for questions no longer in the assessment are ignored.

        Args:
            exam: The assessment the response answers.
            response: Response to update in place.

        Returns:
            The same response object.
        """
        question_ids = [q.id for q in exam.questions]
        total = sum(response.question_scores.get(qid, 0) for qid in question_ids)
        max_score = exam.total_points

        if max_score > 0:
            percent = round(total / max_score * 100, self._settings.score_precision)
        else:
            percent = 0.0

        fully_graded = all(qid in response.question_scores for qid in question_ids)

        response.total_score = total
        response.max_score = max_score
        response.percent = percent
        response.graded = fully_graded
        response.status = (
            ResponseStatus.GRADED if fully_graded else ResponseStatus.PARTIALLY_GRADED
        )
        response.passed = percent >= self.pass_threshold(exam) if fully_graded else None

        return response

    def pending_questions(self, exam: Assessment, response: AssessmentResponse) -> list[str]:
        """Return the ids of questions that still have no score."""
        return [q.id for q in exam.questions if q.id not in response.question_scores]

    def pass_threshold(self, exam: Assessment) -> float:
        """Pass percentage of an assessment, falling back to the configured default."""
        if exam.pass_threshold is not None:
            return exam.pass_threshold
        return self._settings.default_pass_threshold

    def _validate_points(self, question: AssessmentQuestion, score: int) -> None:
        if score < 0 or score > question.points:
            raise GradeValidationError(
                f"Score for question '{question.id}' must be between 0 and "
                f"{question.points}, got: {score}"
            )

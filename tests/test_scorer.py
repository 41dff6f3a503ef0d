"""
Unit tests for response scoring.

Tests auto-grading of whole responses, manual question scores and the
derived totals, status and pass flag.
"""

import pytest

from grade_engine.config import Settings
from grade_engine.errors import GradeValidationError, NotFoundError
from grade_engine.grading import ExamResponseScorer
from grade_engine.models import Assessment, AssessmentResponse, ResponseStatus


@pytest.fixture
def scorer(test_settings: Settings) -> ExamResponseScorer:
    return ExamResponseScorer(settings=test_settings)


class TestScore:
    """Tests for ExamResponseScorer.score."""

    def test_all_correct(
        self,
        scorer: ExamResponseScorer,
        objective_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that a fully correct objective response is graded and passed."""
        result = scorer.score(objective_exam, perfect_response)

        assert result.question_scores == {"q-mc": 10, "q-tf": 5, "q-sa": 5}
        assert result.total_score == 20
        assert result.max_score == 20
        assert result.percent == 100.0
        assert result.status == ResponseStatus.GRADED
        assert result.graded is True
        assert result.auto_graded is True
        assert result.passed is True
        assert result.graded_at is not None

    def test_partial_credit_below_threshold(
        self,
        scorer: ExamResponseScorer,
        objective_exam: Assessment,
        half_response: AssessmentResponse,
    ) -> None:
        """Test that 10/20 is graded but failed at the default threshold."""
        result = scorer.score(objective_exam, half_response)

        assert result.total_score == 10
        assert result.percent == 50.0
        assert result.status == ResponseStatus.GRADED
        assert result.passed is False

    def test_input_is_not_mutated(
        self,
        scorer: ExamResponseScorer,
        objective_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that score returns a new response."""
        scorer.score(objective_exam, perfect_response)

        assert perfect_response.question_scores == {}
        assert perfect_response.status == ResponseStatus.SUBMITTED

    def test_essay_leaves_response_partially_graded(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that an ungraded essay keeps the response partially graded."""
        result = scorer.score(mixed_exam, perfect_response)

        assert result.status == ResponseStatus.PARTIALLY_GRADED
        assert result.graded is False
        assert result.passed is None
        assert result.total_score == 20
        assert result.max_score == 40
        assert result.percent == 50.0
        assert scorer.pending_questions(mixed_exam, result) == ["q-essay"]

    def test_manual_essay_score_is_kept(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that re-running auto-grading keeps an existing manual score."""
        perfect_response.question_scores = {"q-essay": 15}

        result = scorer.score(mixed_exam, perfect_response)

        assert result.question_scores["q-essay"] == 15
        assert result.total_score == 35
        assert result.status == ResponseStatus.GRADED
        assert result.percent == 87.5

    def test_stale_question_scores_are_ignored(
        self,
        scorer: ExamResponseScorer,
        objective_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that scores for removed questions do not count."""
        perfect_response.question_scores = {"q-removed": 50}

        result = scorer.score(objective_exam, perfect_response)

        assert result.total_score == 20
        assert result.percent == 100.0

    def test_percent_rounded_to_two_decimals(self, scorer: ExamResponseScorer) -> None:
        """Test percentage rounding."""
        exam = Assessment(
            id="exam-3",
            course_id="c",
            title="Thirds",
            questions=[
                {"id": "a", "type": "true-false", "points": 1, "correct_answer": "true"},
                {"id": "b", "type": "true-false", "points": 1, "correct_answer": "true"},
                {"id": "c", "type": "true-false", "points": 1, "correct_answer": "true"},
            ],
        )
        response = AssessmentResponse(
            assessment_id="exam-3", student_id="s", answers={"a": "true", "b": "no", "c": "no"}
        )

        assert scorer.score(exam, response).percent == 33.33

    def test_empty_assessment(self, scorer: ExamResponseScorer) -> None:
        """Test that an assessment without questions grades to 0%."""
        exam = Assessment(id="empty", course_id="c", title="Empty")
        response = AssessmentResponse(assessment_id="empty", student_id="s")

        result = scorer.score(exam, response)

        assert result.max_score == 0
        assert result.percent == 0.0
        assert result.status == ResponseStatus.GRADED
        assert result.passed is False

    def test_exam_pass_threshold_overrides_default(
        self,
        scorer: ExamResponseScorer,
        objective_exam: Assessment,
        half_response: AssessmentResponse,
    ) -> None:
        """Test that an assessment's own threshold is used."""
        exam = objective_exam.model_copy(update={"pass_threshold": 50.0})

        assert scorer.score(exam, half_response).passed is True


class TestManualScores:
    """Tests for manual question scoring."""

    def test_apply_manual_score_completes_grading(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that scoring the last question marks the response graded."""
        partial = scorer.score(mixed_exam, perfect_response)

        result = scorer.apply_manual_score(mixed_exam, partial, "q-essay", 12, "Good structure")

        assert result.question_scores["q-essay"] == 12
        assert result.question_feedback["q-essay"] == "Good structure"
        assert result.question_scores["q-mc"] == 10
        assert result.total_score == 32
        assert result.percent == 80.0
        assert result.status == ResponseStatus.GRADED
        assert result.passed is True

    @pytest.mark.parametrize("score", [-1, 21, 100])
    def test_apply_manual_score_out_of_range(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
        score: int,
    ) -> None:
        """Test that scores outside [0, points] are rejected."""
        with pytest.raises(GradeValidationError, match="between 0 and 20"):
            scorer.apply_manual_score(mixed_exam, perfect_response, "q-essay", score)

    def test_apply_manual_score_unknown_question(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that an unknown question id raises NotFoundError."""
        with pytest.raises(NotFoundError, match="q-missing"):
            scorer.apply_manual_score(mixed_exam, perfect_response, "q-missing", 1)

    def test_apply_manual_scores_validates_all_first(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test that one bad score rejects the whole batch."""
        with pytest.raises(GradeValidationError) as exc_info:
            scorer.apply_manual_scores(
                mixed_exam, perfect_response, {"q-essay": 30, "q-tf": 9, "q-mc": 10}
            )

        assert len(exc_info.value.errors) == 2
        assert perfect_response.question_scores == {}

    def test_apply_manual_scores(
        self,
        scorer: ExamResponseScorer,
        mixed_exam: Assessment,
        perfect_response: AssessmentResponse,
    ) -> None:
        """Test whole-response manual grading."""
        scores = {"q-mc": 10, "q-tf": 0, "q-sa": 5, "q-essay": 20}

        result = scorer.apply_manual_scores(mixed_exam, perfect_response, scores, "Well done")

        assert result.total_score == 35
        assert result.status == ResponseStatus.GRADED
        assert result.auto_graded is False
        assert result.instructor_feedback == "Well done"

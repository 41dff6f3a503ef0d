"""
Pydantic models for the grade engine.

These models define the schemas for:
- Gradebook components and per-student course grade records
- Assessments, their questions and student responses
- Batch operation and statistics results

Gradebook and response models are mutable (validated on assignment) because
the engine updates them in place inside a single read-modify-write unit.
Questions are frozen once an assessment is built.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)


def new_id() -> str:
    """Generate a new opaque entity identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ==============================================================================
# Gradebook Models
# ==============================================================================


class GradeComponent(BaseModel):
    """
    A weighted gradebook entry ("grade column") for a course.

    A component may be linked 1:1 to an assessment, in which case its
    scores are written by exam synchronization rather than by hand.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique identifier of the component",
    )

    course_id: str = Field(
        ...,
        description="Course this component belongs to",
    )

    name: str = Field(
        ...,
        description="Display name (e.g. 'Midterm')",
    )

    type: str = Field(
        default="assignment",
        description="Free-form category tag (e.g. 'exam', 'homework')",
    )

    weight_percent: int = Field(
        ...,
        description="Share of the final grade, intended 1-100",
    )

    max_points: int = Field(
        default=100,
        ge=0,
        description="Maximum raw points of the underlying work",
    )

    is_active: bool = Field(
        default=True,
        description="Inactive components are ignored by grade calculation",
    )

    display_order: int = Field(
        default=0,
        description="Position of the column in the gradebook",
    )

    linked_assessment_id: str | None = Field(
        default=None,
        description="Assessment this component mirrors, if any",
    )

    auto_created: bool = Field(
        default=False,
        description="Whether the component was created by exam synchronization",
    )

    description: str = Field(
        default="",
        description="Optional free-text description",
    )


class ComponentPatch(BaseModel):
    """
    Partial update for a grade component.

    Unset fields, blank strings and non-positive numbers leave the
    existing value untouched.
    """

    name: str | None = None
    type: str | None = None
    weight_percent: int | None = None
    max_points: int | None = None
    description: str | None = None
    is_active: bool | None = None


class StudentCourseGrade(BaseModel):
    """
    Per-student, per-course gradebook record.

    ``scores`` maps component id to a raw score in [0, 100]; a missing key
    means the component is ungraded. The final fields are derived.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique identifier of the record",
    )

    student_id: str = Field(
        ...,
        min_length=1,
        description="Student the record belongs to",
    )

    course_id: str = Field(
        ...,
        min_length=1,
        description="Course the record belongs to",
    )

    scores: dict[str, float] = Field(
        default_factory=dict,
        description="Raw component scores keyed by component id",
    )

    final_percent: float | None = Field(
        default=None,
        description="Derived weighted final percentage",
    )

    final_letter: str | None = Field(
        default=None,
        description="Derived letter grade",
    )

    updated_at: datetime | None = Field(
        default=None,
        description="Last time the record was written",
    )

    def set_score(self, component_id: str, score: float) -> None:
        """Enter or replace the score for a component."""
        self.scores[component_id] = score

    def remove_score(self, component_id: str) -> bool:
        """Remove a component score, returning whether one was present."""
        return self.scores.pop(component_id, None) is not None


# ==============================================================================
# Assessment Models
# ==============================================================================


class QuestionType(str, Enum):
    """Supported assessment question types."""

    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    ESSAY = "essay"


# Spellings accepted from upstream callers for each question type.
QUESTION_TYPE_ALIASES: dict[str, QuestionType] = {
    "multiple-choice": QuestionType.MULTIPLE_CHOICE,
    "multiple_choice": QuestionType.MULTIPLE_CHOICE,
    "multiplechoice": QuestionType.MULTIPLE_CHOICE,
    "true-false": QuestionType.TRUE_FALSE,
    "true_false": QuestionType.TRUE_FALSE,
    "truefalse": QuestionType.TRUE_FALSE,
    "boolean": QuestionType.TRUE_FALSE,
    "short-answer": QuestionType.SHORT_ANSWER,
    "short_answer": QuestionType.SHORT_ANSWER,
    "shortanswer": QuestionType.SHORT_ANSWER,
    "text": QuestionType.SHORT_ANSWER,
    "fill-in-the-blank": QuestionType.SHORT_ANSWER,
    "fill_in_the_blank": QuestionType.SHORT_ANSWER,
    "essay": QuestionType.ESSAY,
    "long-answer": QuestionType.ESSAY,
    "long_answer": QuestionType.ESSAY,
    "paragraph": QuestionType.ESSAY,
}


class AssessmentQuestion(BaseModel):
    """
    A single question within an assessment.

    Only the correctness data relevant to ``type`` is consulted:
    options/correct_index for multiple choice, correct_answer for
    true/false, acceptable_answers/case_sensitive for short answer.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique identifier of the question",
    )

    type: QuestionType = Field(
        ...,
        description="Question type",
    )

    prompt: str = Field(
        default="",
        description="Question text shown to the student",
    )

    points: int = Field(
        default=5,
        gt=0,
        description="Points awarded for a fully correct answer",
    )

    options: tuple[str, ...] = Field(
        default=(),
        description="Answer options for multiple-choice questions",
    )

    correct_index: int | None = Field(
        default=None,
        description="Index of the correct option for multiple-choice questions",
    )

    correct_answer: str | None = Field(
        default=None,
        description="Boolean-like correct answer for true/false questions",
    )

    acceptable_answers: tuple[str | None, ...] = Field(
        default=(),
        description="Accepted answers for short-answer questions",
    )

    case_sensitive: bool = Field(
        default=False,
        description="Whether short-answer matching respects case",
    )

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Map the alternative type spellings onto the canonical ones."""
        if isinstance(v, str):
            key = v.strip().lower()
            return QUESTION_TYPE_ALIASES.get(key, key)
        return v


class Assessment(BaseModel):
    """
    An exam or quiz made of auto-gradable and manual questions.

    ``type`` drives the default weight of the gradebook component
    created for the assessment.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique identifier of the assessment",
    )

    course_id: str = Field(
        ...,
        min_length=1,
        description="Course the assessment belongs to",
    )

    title: str = Field(
        ...,
        min_length=1,
        description="Assessment title, mirrored as the component name",
    )

    type: str = Field(
        default="exam",
        description="Category tag used to pick the default component weight",
    )

    questions: list[AssessmentQuestion] = Field(
        default_factory=list,
        description="Questions in display order",
    )

    pass_threshold: float | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Pass percentage; falls back to the configured default",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_points(self) -> int:
        """Sum of all question points."""
        return sum(q.points for q in self.questions)

    def get_question(self, question_id: str) -> AssessmentQuestion | None:
        """Look up a question by id."""
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class ResponseStatus(str, Enum):
    """Lifecycle status of a student's assessment response."""

    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    PARTIALLY_GRADED = "PARTIALLY_GRADED"
    GRADED = "GRADED"
    AUTO_GRADE_FAILED = "AUTO_GRADE_FAILED"


class AssessmentResponse(BaseModel):
    """
    A student's attempt at an assessment.

    ``question_scores`` holds awarded points per question; a missing key
    means the question is not graded yet.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(
        default_factory=new_id,
        description="Unique identifier of the response",
    )

    assessment_id: str = Field(
        ...,
        min_length=1,
        description="Assessment being answered",
    )

    student_id: str = Field(
        ...,
        min_length=1,
        description="Student who submitted the response",
    )

    answers: dict[str, str | None] = Field(
        default_factory=dict,
        description="Submitted answer text keyed by question id",
    )

    question_scores: dict[str, int] = Field(
        default_factory=dict,
        description="Awarded points keyed by question id",
    )

    question_feedback: dict[str, str] = Field(
        default_factory=dict,
        description="Grader feedback keyed by question id",
    )

    instructor_feedback: str | None = Field(
        default=None,
        description="Overall feedback on the response",
    )

    status: ResponseStatus = Field(
        default=ResponseStatus.IN_PROGRESS,
        description="Grading status",
    )

    max_score: int = Field(default=0, ge=0)
    total_score: int = Field(default=0, ge=0)
    percent: float = Field(default=0.0, ge=0)

    graded: bool = False
    auto_graded: bool = False
    passed: bool | None = None

    attempt_number: int = Field(default=1, ge=1)

    graded_at: datetime | None = None

    @property
    def is_submitted(self) -> bool:
        """Whether the student has handed the response in."""
        return self.status != ResponseStatus.IN_PROGRESS

    @property
    def needs_grading(self) -> bool:
        """Whether the response is submitted but not fully graded."""
        return self.is_submitted and not self.graded


# ==============================================================================
# Result Models
# ==============================================================================


class BatchItemResult(BaseModel):
    """Outcome of one unit within a batch operation."""

    model_config = ConfigDict(frozen=True)

    unit_id: str = Field(..., description="Response or student id of the unit")
    success: bool = Field(..., description="Whether the unit completed")
    status: str | None = Field(default=None, description="Resulting status, if any")
    error: str | None = Field(default=None, description="Failure message for failed units")


class BatchResult(BaseModel):
    """
    Summary of a batch operation with per-unit outcomes.

    Individual failures never abort the batch; they are reported here.
    """

    model_config = ConfigDict(frozen=True)

    items: tuple[BatchItemResult, ...] = Field(default=())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        """Number of units that completed."""
        return sum(1 for item in self.items if item.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        """Number of units that failed."""
        return sum(1 for item in self.items if not item.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        """Number of units processed."""
        return len(self.items)


class AssessmentStats(BaseModel):
    """Grading progress counters for one assessment."""

    model_config = ConfigDict(frozen=True)

    assessment_id: str
    total_responses: int = 0
    graded_responses: int = 0
    auto_graded_responses: int = 0
    manually_graded_responses: int = 0
    needs_grading: int = 0
    passed_responses: int = 0
    in_progress_responses: int = 0
    submitted_responses: int = 0
    failed_auto_grading: int = 0
    grading_progress: float = 0.0


class GradebookSnapshot(BaseModel):
    """A serializable dump of every entity the engine works with."""

    components: list[GradeComponent] = Field(default_factory=list)
    records: list[StudentCourseGrade] = Field(default_factory=list)
    assessments: list[Assessment] = Field(default_factory=list)
    responses: list[AssessmentResponse] = Field(default_factory=list)

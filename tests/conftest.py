"""
Pytest configuration and fixtures.

Provides common test fixtures for all test modules.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from grade_engine.config import Settings
from grade_engine.engine import GradeEngine
from grade_engine.models import (
    Assessment,
    AssessmentQuestion,
    AssessmentResponse,
    GradeComponent,
    QuestionType,
    ResponseStatus,
    StudentCourseGrade,
)
from grade_engine.stores import InMemoryStores

COURSE_ID = "course-101"


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings independent of the environment."""
    return Settings(
        _env_file=None,
        default_pass_threshold=60.0,
        batch_max_workers=1,
        log_level="WARNING",
        log_json=False,
        score_precision=2,
    )


# ==============================================================================
# Store and Engine Fixtures
# ==============================================================================


@pytest.fixture
def stores() -> InMemoryStores:
    """Empty in-memory stores."""
    return InMemoryStores()


@pytest.fixture
def engine(stores: InMemoryStores, test_settings: Settings) -> GradeEngine:
    """Grade engine over empty in-memory stores."""
    return GradeEngine.from_stores(stores, test_settings)


# ==============================================================================
# Sample Gradebook Fixtures
# ==============================================================================


@pytest.fixture
def homework() -> GradeComponent:
    """Homework component worth 30%."""
    return GradeComponent(id="hw", course_id=COURSE_ID, name="Homework", type="homework", weight_percent=30)


@pytest.fixture
def midterm() -> GradeComponent:
    """Midterm component worth 30%."""
    return GradeComponent(id="mid", course_id=COURSE_ID, name="Midterm", type="midterm", weight_percent=30)


@pytest.fixture
def final_exam() -> GradeComponent:
    """Final exam component worth 40%."""
    return GradeComponent(id="final", course_id=COURSE_ID, name="Final", type="final", weight_percent=40)


@pytest.fixture
def course_components(
    homework: GradeComponent, midterm: GradeComponent, final_exam: GradeComponent
) -> list[GradeComponent]:
    """A fully allocated course: homework 30 + midterm 30 + final 40."""
    return [homework, midterm, final_exam]


@pytest.fixture
def older_record() -> StudentCourseGrade:
    """Older duplicate record holding a homework score."""
    return StudentCourseGrade(
        id="rec-old",
        student_id="student-1",
        course_id=COURSE_ID,
        scores={"hw": 70.0},
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def newer_record() -> StudentCourseGrade:
    """Newer duplicate record holding a quiz score."""
    return StudentCourseGrade(
        id="rec-new",
        student_id="student-1",
        course_id=COURSE_ID,
        scores={"quiz": 85.0},
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(days=1),
    )


# ==============================================================================
# Sample Assessment Fixtures
# ==============================================================================


@pytest.fixture
def mc_question() -> AssessmentQuestion:
    """Multiple-choice question with option 'c' correct."""
    return AssessmentQuestion(
        id="q-mc",
        type=QuestionType.MULTIPLE_CHOICE,
        prompt="Pick the third letter",
        points=10,
        options=("a", "b", "c", "d"),
        correct_index=2,
    )


@pytest.fixture
def tf_question() -> AssessmentQuestion:
    """True/false question whose answer is true."""
    return AssessmentQuestion(
        id="q-tf",
        type=QuestionType.TRUE_FALSE,
        prompt="The sky is blue",
        points=5,
        correct_answer="true",
    )


@pytest.fixture
def sa_question() -> AssessmentQuestion:
    """Short-answer question accepting 'Paris'."""
    return AssessmentQuestion(
        id="q-sa",
        type=QuestionType.SHORT_ANSWER,
        prompt="Capital of France",
        points=5,
        acceptable_answers=("Paris",),
    )


@pytest.fixture
def essay_question() -> AssessmentQuestion:
    """Essay question that always needs a human grader."""
    return AssessmentQuestion(
        id="q-essay",
        type=QuestionType.ESSAY,
        prompt="Discuss the French Revolution",
        points=20,
    )


@pytest.fixture
def objective_exam(
    mc_question: AssessmentQuestion,
    tf_question: AssessmentQuestion,
    sa_question: AssessmentQuestion,
) -> Assessment:
    """Exam made only of auto-gradable questions (20 points)."""
    return Assessment(
        id="exam-obj",
        course_id=COURSE_ID,
        title="Unit Quiz",
        type="quiz",
        questions=[mc_question, tf_question, sa_question],
    )


@pytest.fixture
def mixed_exam(
    mc_question: AssessmentQuestion,
    tf_question: AssessmentQuestion,
    sa_question: AssessmentQuestion,
    essay_question: AssessmentQuestion,
) -> Assessment:
    """Exam with auto-gradable questions and one essay (40 points)."""
    return Assessment(
        id="exam-mixed",
        course_id=COURSE_ID,
        title="Midterm Exam",
        type="midterm",
        questions=[mc_question, tf_question, sa_question, essay_question],
    )


@pytest.fixture
def perfect_response() -> AssessmentResponse:
    """Submitted response answering every objective question correctly."""
    return AssessmentResponse(
        id="resp-1",
        assessment_id="exam-obj",
        student_id="student-1",
        answers={"q-mc": "c", "q-tf": "yes", "q-sa": " paris "},
        status=ResponseStatus.SUBMITTED,
    )


@pytest.fixture
def half_response() -> AssessmentResponse:
    """Submitted response with only the multiple-choice answer right."""
    return AssessmentResponse(
        id="resp-2",
        assessment_id="exam-obj",
        student_id="student-2",
        answers={"q-mc": "2", "q-tf": "false", "q-sa": "Lyon"},
        status=ResponseStatus.SUBMITTED,
    )

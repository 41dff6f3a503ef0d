"""
Tests for the command-line interface.

Runs each command against snapshot files written to a temporary directory.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from grade_engine.main import app
from grade_engine.models import (
    Assessment,
    AssessmentResponse,
    GradebookSnapshot,
    GradeComponent,
    ResponseStatus,
    StudentCourseGrade,
)

COURSE_ID = "course-101"

runner = CliRunner()


@pytest.fixture
def snapshot_file(
    temp_dir: Path,
    course_components: list[GradeComponent],
    older_record: StudentCourseGrade,
    newer_record: StudentCourseGrade,
    objective_exam: Assessment,
    perfect_response: AssessmentResponse,
    half_response: AssessmentResponse,
) -> Path:
    """Snapshot with a full course, duplicate records and an ungraded quiz."""
    quiz = GradeComponent(
        id="quiz-col",
        course_id="course-202",
        name="Unit Quiz",
        weight_percent=50,
        linked_assessment_id=objective_exam.id,
    )
    exam = objective_exam.model_copy(update={"course_id": "course-202"})

    snapshot = GradebookSnapshot(
        components=[*course_components, quiz],
        records=[
            StudentCourseGrade(
                student_id="student-9", course_id=COURSE_ID, scores={"hw": 90, "mid": 80}
            ),
            older_record,
            newer_record,
        ],
        assessments=[exam],
        responses=[perfect_response, half_response],
    )

    path = temp_dir / "snapshot.json"
    path.write_text(snapshot.model_dump_json(), encoding="utf-8")
    return path


def load(path: Path) -> GradebookSnapshot:
    return GradebookSnapshot.model_validate_json(path.read_text(encoding="utf-8"))


class TestLetterCommand:
    """Tests for the letter command."""

    @pytest.mark.parametrize("percent,letter", [("93", "A"), ("92.99", "A-"), ("59", "F")])
    def test_letter(self, percent: str, letter: str) -> None:
        """Test letter grade lookup."""
        result = runner.invoke(app, ["letter", percent])

        assert result.exit_code == 0
        assert result.output.strip().splitlines()[-1] == letter


class TestCalculateCommand:
    """Tests for the calculate command."""

    def test_calculate(self, snapshot_file: Path, temp_dir: Path) -> None:
        """Test that final grades are recomputed and written out."""
        output = temp_dir / "out" / "calculated.json"

        result = runner.invoke(app, ["calculate", str(snapshot_file), COURSE_ID, "-o", str(output)])

        assert result.exit_code == 0
        assert "student-9" in result.output
        assert "51.00" in result.output

        saved = load(output)
        grades = {r.student_id: r.final_percent for r in saved.records}
        assert grades["student-9"] == 51.0

    def test_missing_snapshot(self, temp_dir: Path) -> None:
        """Test that a missing file exits with an error."""
        result = runner.invoke(app, ["calculate", str(temp_dir / "nope.json"), COURSE_ID])

        assert result.exit_code == 1
        assert "Snapshot file not found" in result.output

    def test_invalid_snapshot(self, temp_dir: Path) -> None:
        """Test that malformed JSON exits with an error."""
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, ["calculate", str(path), COURSE_ID])

        assert result.exit_code == 1
        assert "Snapshot Error" in result.output


class TestAutogradeCommand:
    """Tests for the autograde command."""

    def test_autograde(self, snapshot_file: Path, temp_dir: Path) -> None:
        """Test that submitted responses are graded and synced."""
        output = temp_dir / "graded.json"

        result = runner.invoke(app, ["autograde", str(snapshot_file), "exam-obj", "-o", str(output)])

        assert result.exit_code == 0
        assert "Succeeded: 2" in result.output

        saved = load(output)
        assert {r.status for r in saved.responses} == {ResponseStatus.GRADED}
        synced = {r.student_id: r.scores for r in saved.records if r.course_id == "course-202"}
        assert synced == {"student-1": {"quiz-col": 100.0}, "student-2": {"quiz-col": 50.0}}

    def test_unknown_assessment(self, snapshot_file: Path) -> None:
        """Test that an unknown assessment exits with an error."""
        result = runner.invoke(app, ["autograde", str(snapshot_file), "missing"])

        assert result.exit_code == 1
        assert "Assessment not found" in result.output


class TestReconcileCommand:
    """Tests for the reconcile command."""

    def test_reconcile(self, snapshot_file: Path, temp_dir: Path) -> None:
        """Test that duplicates collapse to one record per student."""
        output = temp_dir / "reconciled.json"

        result = runner.invoke(app, ["reconcile", str(snapshot_file), COURSE_ID, "-o", str(output)])

        assert result.exit_code == 0
        assert "Duplicates merged: 1" in result.output

        saved = load(output)
        students = sorted(r.student_id for r in saved.records if r.course_id == COURSE_ID)
        assert students == ["student-1", "student-9"]
        merged = next(r for r in saved.records if r.student_id == "student-1")
        assert merged.scores == {"hw": 70.0}

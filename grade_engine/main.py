"""
Grade Engine CLI Application.

Provides a command-line interface over gradebook snapshot files: final
grade calculation, assessment auto-grading, duplicate record
reconciliation and letter grade lookup.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from grade_engine.config import get_settings
from grade_engine.engine import GradeEngine
from grade_engine.errors import GradeEngineError
from grade_engine.grading.letters import to_letter
from grade_engine.logging_utils import configure_logging
from grade_engine.models import BatchResult, GradebookSnapshot, StudentCourseGrade
from grade_engine.stores.memory import InMemoryStores

# Create Typer app
app = typer.Typer(
    name="grade-engine",
    help="Weighted grade aggregation and exam auto-grading",
    add_completion=False,
)

console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Emit debug log events"),
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


@app.command()
def calculate(
    snapshot_file: Annotated[Path, typer.Argument(help="Path to the gradebook snapshot JSON")],
    course_id: Annotated[str, typer.Argument(help="Course to calculate")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the updated snapshot to this path"),
    ] = None,
) -> None:
    """
    Recalculate and display every student's final grade in a course.
    """
    try:
        stores = _load_stores(snapshot_file)
        engine = GradeEngine.from_stores(stores)

        result = engine.recalculate_course(course_id)
        records = sorted(engine.course_grades(course_id), key=lambda r: r.student_id)

        _display_grades(course_id, records)
        if result.failed:
            _display_batch(result, title="Recalculation Failures")

        if output:
            _save_stores(stores, output)

    except GradeEngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def autograde(
    snapshot_file: Annotated[Path, typer.Argument(help="Path to the gradebook snapshot JSON")],
    assessment_id: Annotated[str, typer.Argument(help="Assessment whose responses to grade")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the updated snapshot to this path"),
    ] = None,
) -> None:
    """
    Auto-grade every submitted response of an assessment.

    Fully graded responses are pushed into the assessment's gradebook
    component. Responses that fail are reported and marked for review.
    """
    try:
        stores = _load_stores(snapshot_file)
        engine = GradeEngine.from_stores(stores)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Auto-grading responses...", total=None)
            result = engine.auto_grade_all_for_assessment(assessment_id)

        _display_batch(result, title="Auto-Grading Results")

        stats = engine.assessment_stats(assessment_id)
        console.print(
            f"\n[bold]Graded:[/bold] {stats.graded_responses}/{stats.total_responses} "
            f"({stats.grading_progress:.1f}%)  "
            f"[bold]Needs grading:[/bold] {stats.needs_grading}  "
            f"[bold]Passed:[/bold] {stats.passed_responses}"
        )

        if output:
            _save_stores(stores, output)

    except GradeEngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def reconcile(
    snapshot_file: Annotated[Path, typer.Argument(help="Path to the gradebook snapshot JSON")],
    course_id: Annotated[str, typer.Argument(help="Course whose records to reconcile")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the updated snapshot to this path"),
    ] = None,
) -> None:
    """
    Merge duplicate grade records and drop scores of removed components.
    """
    try:
        stores = _load_stores(snapshot_file)
        engine = GradeEngine.from_stores(stores)

        summary = engine.cleanup_course(course_id)

        console.print(
            Panel(
                f"Duplicates merged: [bold]{summary['duplicates_merged']}[/bold]\n"
                f"Records cleaned: [bold]{summary['records_cleaned']}[/bold]\n"
                f"Students recalculated: [bold]{summary['students_recalculated']}[/bold]",
                title="Reconciliation",
            )
        )
        records = sorted(engine.course_grades(course_id), key=lambda r: r.student_id)
        _display_grades(course_id, records)

        if output:
            _save_stores(stores, output)

    except GradeEngineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def letter(
    percent: Annotated[float, typer.Argument(help="Final percentage")],
) -> None:
    """
    Print the letter grade for a percentage.
    """
    console.print(to_letter(percent))


def _load_stores(snapshot_file: Path) -> InMemoryStores:
    """Load a snapshot file into in-memory stores, exiting on bad input."""
    if not snapshot_file.exists():
        console.print(f"[red]Error:[/red] Snapshot file not found: {snapshot_file}")
        raise typer.Exit(1)

    try:
        snapshot = GradebookSnapshot.model_validate_json(snapshot_file.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Snapshot Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    return InMemoryStores(snapshot)


def _save_stores(stores: InMemoryStores, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(stores.snapshot().model_dump_json(indent=2), encoding="utf-8")
    console.print(f"\n[green]Snapshot saved to:[/green] {output}")


def _display_grades(course_id: str, records: list[StudentCourseGrade]) -> None:
    """Display final grades in a formatted table."""
    if not records:
        console.print(f"[yellow]No grade records for course {course_id}[/yellow]")
        return

    table = Table(title=f"Final Grades: {course_id}")
    table.add_column("Student", style="cyan")
    table.add_column("Scores", justify="right")
    table.add_column("Final %", justify="right")
    table.add_column("Letter", justify="center")

    for record in records:
        percent = record.final_percent if record.final_percent is not None else 0.0
        color = "green" if percent >= 70 else "yellow" if percent >= 60 else "red"
        table.add_row(
            record.student_id,
            str(len(record.scores)),
            f"[{color}]{percent:.2f}[/{color}]",
            record.final_letter or "-",
        )

    console.print(table)


def _display_batch(result: BatchResult, title: str) -> None:
    """Display a batch summary with one row per failed unit."""
    color = "green" if result.failed == 0 else "yellow"
    console.print(
        Panel(
            f"[{color}]Succeeded: {result.succeeded}  Failed: {result.failed}  "
            f"Total: {result.total}[/{color}]",
            title=title,
        )
    )

    failures = [item for item in result.items if not item.success]
    if failures:
        table = Table(title="Failures")
        table.add_column("Unit", style="cyan")
        table.add_column("Error")
        for item in failures:
            table.add_row(item.unit_id, item.error or "")
        console.print(table)


if __name__ == "__main__":
    app()

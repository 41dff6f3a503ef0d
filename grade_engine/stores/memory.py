"""
Thread-safe in-memory store implementations.

Entities are deep-copied on the way in and out so that callers holding a
model never share state with the store, the way rows fetched from a real
database behave.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel

from grade_engine.models import (
    Assessment,
    AssessmentResponse,
    GradebookSnapshot,
    GradeComponent,
    StudentCourseGrade,
)

T = TypeVar("T", bound=BaseModel)


class _MemoryTable(Generic[T]):
    """Id-keyed table of pydantic models guarded by a lock."""

    def __init__(self, items: Iterable[T] = ()):
        self._lock = threading.RLock()
        self._rows: dict[str, T] = {}
        for item in items:
            self.save(item)

    def get(self, entity_id: str) -> T | None:
        with self._lock:
            row = self._rows.get(entity_id)
            return row.model_copy(deep=True) if row is not None else None

    def save(self, entity: T) -> T:
        with self._lock:
            self._rows[entity.id] = entity.model_copy(deep=True)  # type: ignore[attr-defined]
        return entity

    def delete(self, entity_id: str) -> None:
        with self._lock:
            self._rows.pop(entity_id, None)

    def _select(self, predicate) -> list[T]:
        with self._lock:
            return [row.model_copy(deep=True) for row in self._rows.values() if predicate(row)]

    def all(self) -> list[T]:
        return self._select(lambda _: True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


class InMemoryComponentStore(_MemoryTable[GradeComponent]):
    """In-memory ComponentStore."""

    def find_active_by_course(self, course_id: str) -> list[GradeComponent]:
        rows = self._select(lambda c: c.course_id == course_id and c.is_active)
        return sorted(rows, key=lambda c: c.display_order)

    def find_by_course(self, course_id: str) -> list[GradeComponent]:
        rows = self._select(lambda c: c.course_id == course_id)
        return sorted(rows, key=lambda c: c.display_order)

    def find_linked(self, course_id: str, assessment_id: str) -> list[GradeComponent]:
        rows = self._select(
            lambda c: c.course_id == course_id and c.linked_assessment_id == assessment_id
        )
        return sorted(rows, key=lambda c: c.display_order)


class InMemoryGradeRecordStore(_MemoryTable[StudentCourseGrade]):
    """In-memory GradeRecordStore. Allows several records per student and course."""

    def find_all_by_student_and_course(
        self, student_id: str, course_id: str
    ) -> list[StudentCourseGrade]:
        return self._select(lambda r: r.student_id == student_id and r.course_id == course_id)

    def find_by_course(self, course_id: str) -> list[StudentCourseGrade]:
        return self._select(lambda r: r.course_id == course_id)

    def delete_by_student_and_course(self, student_id: str, course_id: str) -> int:
        with self._lock:
            doomed = [
                record_id
                for record_id, r in self._rows.items()
                if r.student_id == student_id and r.course_id == course_id
            ]
            for record_id in doomed:
                del self._rows[record_id]
            return len(doomed)


class InMemoryAssessmentStore(_MemoryTable[Assessment]):
    """In-memory AssessmentStore."""


class InMemoryResponseStore(_MemoryTable[AssessmentResponse]):
    """In-memory ResponseStore."""

    def find_by_assessment(self, assessment_id: str) -> list[AssessmentResponse]:
        return self._select(lambda r: r.assessment_id == assessment_id)


class InMemoryStores:
    """Bundle of the four in-memory stores, loadable from a snapshot."""

    def __init__(self, snapshot: GradebookSnapshot | None = None):
        snapshot = snapshot or GradebookSnapshot()
        self.components = InMemoryComponentStore(snapshot.components)
        self.records = InMemoryGradeRecordStore(snapshot.records)
        self.assessments = InMemoryAssessmentStore(snapshot.assessments)
        self.responses = InMemoryResponseStore(snapshot.responses)

    def snapshot(self) -> GradebookSnapshot:
        """Dump the current contents of every store."""
        return GradebookSnapshot(
            components=self.components.all(),
            records=self.records.all(),
            assessments=self.assessments.all(),
            responses=self.responses.all(),
        )

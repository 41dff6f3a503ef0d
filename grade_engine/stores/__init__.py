"""
Store Module.

Persistence contracts used by the engine and in-memory implementations.
"""

from grade_engine.stores.memory import (
    InMemoryAssessmentStore,
    InMemoryComponentStore,
    InMemoryGradeRecordStore,
    InMemoryResponseStore,
    InMemoryStores,
)
from grade_engine.stores.protocols import (
    AssessmentStore,
    ComponentStore,
    GradeRecordStore,
    ResponseStore,
)

__all__ = [
    "AssessmentStore",
    "ComponentStore",
    "GradeRecordStore",
    "InMemoryAssessmentStore",
    "InMemoryComponentStore",
    "InMemoryGradeRecordStore",
    "InMemoryResponseStore",
    "InMemoryStores",
    "ResponseStore",
]

"""
Gradebook Module.

Grade components, per-student course records, duplicate reconciliation
and exam synchronization.
"""

from grade_engine.gradebook.reconciler import DuplicateReconciler
from grade_engine.gradebook.service import Gradebook
from grade_engine.gradebook.sync import (
    DEFAULT_TYPE_WEIGHTS,
    DEFAULT_WEIGHT,
    ExamGradeSynchronizer,
    suggested_weight,
)
from grade_engine.gradebook.validator import ComponentValidator

__all__ = [
    "ComponentValidator",
    "DEFAULT_TYPE_WEIGHTS",
    "DEFAULT_WEIGHT",
    "DuplicateReconciler",
    "ExamGradeSynchronizer",
    "Gradebook",
    "suggested_weight",
]

"""
Grading Module.

Pure grading logic: weighted final grades, letter grades, question
auto-grading and response scoring.
"""

from grade_engine.grading.autograder import QuestionAutoGrader
from grade_engine.grading.calculator import WeightedGradeCalculator
from grade_engine.grading.letters import LetterGradeMapper, to_letter
from grade_engine.grading.scorer import ExamResponseScorer

__all__ = [
    "ExamResponseScorer",
    "LetterGradeMapper",
    "QuestionAutoGrader",
    "WeightedGradeCalculator",
    "to_letter",
]

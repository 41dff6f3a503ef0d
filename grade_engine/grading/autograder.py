"""
Auto-grading of objective assessment questions.

Multiple-choice, true/false and short-answer questions are graded
all-or-nothing against their stored correctness data. Essay questions
always need a human grader.
"""

import re
from typing import ClassVar

from grade_engine.models import AssessmentQuestion, QuestionType

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


class QuestionAutoGrader:
    """
    Stateless grader for a single question and submitted answer.

    Every question either earns its full points or nothing.
    """

    TRUE_VALUES: ClassVar[frozenset[str]] = frozenset({"true", "1", "yes", "t", "y"})

    def can_auto_grade(self, question: AssessmentQuestion) -> bool:
        """
        Check whether a question carries enough data to be graded automatically.

        Args:
            question: The question to inspect.

        Returns:
            True if ``grade`` can score the question without a human.
        """
        if question.type == QuestionType.MULTIPLE_CHOICE:
            return len(question.options) >= 2 and question.correct_index is not None

        if question.type == QuestionType.TRUE_FALSE:
            return bool(question.correct_answer and question.correct_answer.strip())

        if question.type == QuestionType.SHORT_ANSWER:
            return any(a and a.strip() for a in question.acceptable_answers)

        return False

    def grade(self, question: AssessmentQuestion, answer: str | None) -> int:
        """
        Grade a submitted answer.

        Args:
            question: The question being answered.
            answer: Raw submitted answer text.

        Returns:
            ``question.points`` for a correct answer, otherwise 0.
        """
        if answer is None or not answer.strip():
            return 0

        if question.type == QuestionType.MULTIPLE_CHOICE:
            correct = self._grade_multiple_choice(question, answer)
        elif question.type == QuestionType.TRUE_FALSE:
            correct = self._grade_true_false(question, answer)
        elif question.type == QuestionType.SHORT_ANSWER:
            correct = self._grade_short_answer(question, answer)
        else:
            correct = False

        return question.points if correct else 0

    def _grade_multiple_choice(self, question: AssessmentQuestion, answer: str) -> bool:
        if question.correct_index is None:
            return False

        index = self._resolve_option_index(question.options, answer)
        return index is not None and index == question.correct_index

    def _resolve_option_index(self, options: tuple[str, ...], answer: str) -> int | None:
        """Read the answer as an option index, falling back to option text."""
        candidate = answer.strip()
        if _INTEGER_PATTERN.fullmatch(candidate):
            return int(candidate)

        for i, option in enumerate(options):
            if option is not None and option.strip() == candidate:
                return i
        return None

    def _grade_true_false(self, question: AssessmentQuestion, answer: str) -> bool:
        if question.correct_answer is None:
            return False
        return self.parse_boolean(answer) == self.parse_boolean(question.correct_answer)

    def _grade_short_answer(self, question: AssessmentQuestion, answer: str) -> bool:
        submitted = self._fold(answer.strip(), question.case_sensitive)

        for acceptable in question.acceptable_answers:
            if acceptable is None or not acceptable.strip():
                continue
            if self._fold(acceptable.strip(), question.case_sensitive) == submitted:
                return True
        return False

    @staticmethod
    def _fold(text: str, case_sensitive: bool) -> str:
        return text if case_sensitive else text.lower()

    @classmethod
    def parse_boolean(cls, value: str | None) -> bool:
        """
        Normalize a boolean-like string.

        Unrecognized values count as false.
        """
        if value is None:
            return False
        return value.strip().lower() in cls.TRUE_VALUES

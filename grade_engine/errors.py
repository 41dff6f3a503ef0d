"""
Exception hierarchy for the grade engine.

Validation and lookup failures are raised to the caller immediately.
Synchronization failures are raised inside the engine only and are
logged by the facade instead of being propagated.
"""


class GradeEngineError(Exception):
    """Base class for all grade engine errors."""


class GradeValidationError(GradeEngineError):
    """
    Raised when an input fails validation.

    Covers out-of-range scores, unparseable score payloads, missing
    identifiers and component weights that would overflow a course.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = errors
        if len(errors) == 1:
            message = errors[0]
        else:
            message = "Validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


class NotFoundError(GradeEngineError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str | None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found with ID: {entity_id}")


class SyncFailure(GradeEngineError):
    """Raised when an exam percentage cannot be pushed into the gradebook."""

    def __init__(self, message: str, assessment_id: str, student_id: str | None = None):
        self.assessment_id = assessment_id
        self.student_id = student_id
        super().__init__(message)

"""
Exam error taxonomy.

Every failure that leaves the exam core is one of these. Store and storage
exceptions are wrapped at the boundary where they happen.
"""


class ExamError(Exception):
    """Base class. Carries the HTTP status the API layer answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ExamError):
    status_code = 404


class InsufficientPool(ExamError):
    """Fewer questions in the bank than the test length requires."""

    status_code = 422

    def __init__(self, available: int, required: int):
        super().__init__(
            f"Not enough questions to build a test: {available} available, {required} required"
        )
        self.available = available
        self.required = required


class DuplicateError(ExamError):
    status_code = 409


class PersistenceError(ExamError):
    status_code = 503


class ValidationError(ExamError):
    status_code = 400

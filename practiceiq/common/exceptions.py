"""
Common Exception Classes

Error taxonomy for the adaptive learning engine. Callers can catch
``BaseError`` for anything raised on purpose by this package.
"""

from typing import Any, Dict, Optional


class BaseError(Exception):
    """
    Root of the package's errors.

    Args:
        message: Human readable description
        original_exception: The lower-level error being wrapped, if any
    """

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class NotFoundError(BaseError):
    """Raised when a unit, question or progress record is absent."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(f"No {resource_type.lower()} record {resource_id!r}")
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidInputError(BaseError):
    """
    Raised for malformed quality, time or counter values at the boundary.

    ``errors`` maps each offending field to what is wrong with it.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = dict(errors or {})

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        fields = "; ".join(f"{name}: {problem}" for name, problem in self.errors.items())
        return f"{self.message} ({fields})"


class InternalError(BaseError):
    """Raised for unexpected failures of a collaborator such as the store."""


class DatabaseError(InternalError):
    """A storage operation failed; wraps the driver or ORM error."""


class ConcurrentUpdateError(InternalError):
    """Raised when a progress record changed between read and write."""

    def __init__(self, progress_id: Any, expected_attempts: int, actual_attempts: Optional[int] = None):
        detail = f"expected {expected_attempts} attempts"
        if actual_attempts is not None:
            detail += f", found {actual_attempts}"
        super().__init__(f"Progress {progress_id} was modified concurrently ({detail})")
        self.progress_id = progress_id
        self.expected_attempts = expected_attempts
        self.actual_attempts = actual_attempts


class SubmissionFailedError(BaseError):
    """
    Raised when an answer submission could not be persisted.

    The computed progress update is discarded; nothing about the submission
    should be reported to the learner as saved.
    """

    def __init__(self, user_id: str, question_id: str, original_exception: Optional[Exception] = None):
        reason = f": {original_exception}" if original_exception else ""
        super().__init__(
            f"Submission of question {question_id} for user {user_id} failed{reason}",
            original_exception
        )
        self.user_id = user_id
        self.question_id = question_id


class ConfigurationError(BaseError):
    """A config file or environment value could not be loaded."""

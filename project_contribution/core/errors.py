"""
Exception hierarchy for the project contribution flow.

Each error carries the HTTP status the API layer answers with, so the
endpoint can translate any ``ContributionError`` without knowing its origin.
"""

from typing import Optional

from project_contribution.models.records import ChangeRequestRef


class ContributionError(Exception):
    """Base exception for all contribution failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ContributionError):
    """Raised for bad or missing user input. Never touches external systems."""

    status_code = 400


class PayloadTooLargeError(ValidationError):
    """Raised when an uploaded logo exceeds the size cap."""

    status_code = 413


class RateLimitError(ContributionError):
    """Raised when a client exhausted its request quota."""

    status_code = 429

    def __init__(self, message: str, retry_after_seconds: int):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class ConfigurationError(ContributionError):
    """Raised for operator-caused problems such as a missing credential."""

    status_code = 500


class FetchError(ContributionError):
    """Raised when the upstream project record could not be read."""

    status_code = 500

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        upstream_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class SubmissionError(ContributionError):
    """Raised when a change request could not be created."""

    status_code = 500


class PartialSubmissionError(SubmissionError):
    """
    Raised when the record change request was created but the logo one failed.

    ``record`` points at the pull request that already exists so callers can
    follow up on it.
    """

    def __init__(self, message: str, record: ChangeRequestRef):
        super().__init__(message)
        self.record = record


class UnexpectedError(ContributionError):
    """Wraps anything uncaught so callers get a generic 500."""

    status_code = 500

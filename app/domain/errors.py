"""
app/domain/errors.py

Exception taxonomy for the lien discovery and sync pipeline.
"""

from __future__ import annotations


class LienPipelineError(Exception):
    """Base exception for pipeline failures."""


class SourceConfigurationError(LienPipelineError):
    """
    Raised when a source descriptor is malformed.

    Carries every problem found so callers can report them together.
    """

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid source configuration: " + "; ".join(self.problems))


class SourceNotFoundError(LienPipelineError):
    """Raised when a referenced source does not exist."""


class AcquisitionError(LienPipelineError):
    """Raised when a whole source cannot be navigated or enumerated."""


class DocumentFetchError(LienPipelineError):
    """Raised when a single document cannot be retrieved."""


class PipelineAlreadyRunningError(LienPipelineError):
    """Raised when a run is triggered while another run is active."""


class LienNotFoundError(LienPipelineError):
    """Raised when a referenced lien record does not exist."""


class SyncRejectedError(LienPipelineError):
    """Raised when a record cannot be sent to the external service."""


class SyncRequestError(LienPipelineError):
    """Raised when the external record service rejects or fails a request."""


class ScheduleValidationError(LienPipelineError):
    """Raised when a schedule update carries invalid values."""

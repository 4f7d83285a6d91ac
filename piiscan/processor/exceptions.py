from piiscan.extraction.exceptions import ValidationError


class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class SubmissionValidationError(ProcessorError, ValidationError):
    """Raised when an upload record is rejected before a session is created."""


class InfectedArchiveError(ProcessorError):
    """Raised when the antivirus scanner flags an archive."""

    def __init__(self, signatures: list[str]) -> None:
        super().__init__(f"Archive flagged by antivirus: {', '.join(signatures) or 'unknown'}")
        self.signatures = signatures


class InfrastructureError(ProcessorError):
    """Raised when the queue, the session store or persistence is unavailable."""

from piiscan.extraction.models import ExtractionLimit


class ValidationError(Exception):
    """Base for rejections of user-supplied archives and upload records."""


class ArchiveValidationError(ValidationError):
    """Raised when an archive fails the pre-extraction checks (size, format)."""


class ExtractionError(Exception):
    """Raised when an archive violates an extraction safety limit.

    Attributes:
        limit: The violated limit.
        entry_name: Offending entry path, or None for archive-wide violations.
    """

    def __init__(self, limit: ExtractionLimit, entry_name: str | None, message: str) -> None:
        super().__init__(message)
        self.limit = limit
        self.entry_name = entry_name

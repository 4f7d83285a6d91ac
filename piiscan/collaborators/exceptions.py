class CollaboratorError(Exception):
    """Base exception for external collaborator failures."""


class AntivirusError(CollaboratorError):
    """Raised when the antivirus scan cannot produce a verdict."""

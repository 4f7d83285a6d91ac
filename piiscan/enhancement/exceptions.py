class EnhancementError(Exception):
    """Raised when risk classification fails."""


class EnhancementValidationError(EnhancementError):
    """Raised when the classifier response is missing required fields."""


class EnhancementNetworkError(EnhancementError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""

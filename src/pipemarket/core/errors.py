class MarketError(Exception):
    """Base error for all user-facing pipemarket exceptions."""

    kind = "error"


class ConfigurationError(MarketError):
    """Raised when configuration is invalid or incomplete."""

    kind = "configuration"


class ProjectNotInitializedError(MarketError):
    """Raised when .pipemarket metadata is missing."""

    kind = "configuration"


class NotFoundError(MarketError):
    """Raised when a resource, user, or rating is absent where required."""

    kind = "not_found"


class ResourceNotFoundError(NotFoundError):
    """Raised when no resource exists for the given id."""

    def __init__(self, resource_id: int) -> None:
        super().__init__(f"Resource not found: {resource_id}")
        self.resource_id = resource_id


class SourceNotFoundError(NotFoundError):
    """Raised when a backing source file cannot be located."""


class ValidationError(MarketError):
    """Raised when input fails model invariants."""

    kind = "validation"


class InvalidRatingValueError(ValidationError):
    """Raised when a star value falls outside the accepted range."""


class InvalidResourceTypeError(ValidationError):
    """Raised when an upload names an unknown resource kind."""


class AuthenticationError(ValidationError):
    """Raised when an OAuth code or access token is rejected."""


class ConflictError(MarketError):
    """Raised when a write was computed from stale state."""

    kind = "conflict"


class RatingConflictError(ConflictError):
    """Raised when prev_stars does not match the stored rating."""


class TransientError(MarketError):
    """Raised when an external collaborator fails; safe to retry."""

    kind = "transient"

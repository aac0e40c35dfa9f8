"""Service-level error taxonomy.

Every error carries the HTTP status the API layer should answer with; the
handlers in ``memehub.main`` translate them into ``{"detail": ...}`` bodies.
"""


class ServiceError(Exception):
    """Base exception for service errors."""

    default_message = "Service error"
    default_status_code = 500

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        self.status_code = status_code or self.default_status_code


class NotFoundError(ServiceError):
    """Raised when a referenced user or meme does not exist."""

    default_message = "Resource not found"
    default_status_code = 404


class DuplicateVoteError(ServiceError):
    """Raised when a user repeats a vote in the direction they already hold."""

    default_message = "Already voted on this meme"
    default_status_code = 400


class UnauthorizedError(ServiceError):
    """Raised when a mutating call arrives without a verified identity."""

    default_message = "Authentication required"
    default_status_code = 401


class AggregationError(ServiceError):
    """Raised when a store aggregation fails."""

    default_message = "Could not compute results, please try again"
    default_status_code = 500


class APIError(ServiceError):
    """Raised when the image host cannot be reached or rejects a request."""

    default_message = "External API error"
    default_status_code = 502


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""

    default_message = "Rate limit exceeded"
    default_status_code = 429

    def __init__(self, message: str | None = None, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

"""Custom exceptions for the salon application."""


class SalonException(Exception):
    """Base class for application exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    specific status_code for consistent HTTP response handling.
    """
    status_code: int = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class RateLimitExceededError(SalonException):
    """Raised when a client exceeds the public booking rate limit.

    Maps to HTTP 429 Too Many Requests with a Retry-After header.
    """
    status_code = 429
    DEFAULT_RETRY_AFTER = 900

    def __init__(
        self,
        retry_after: int | None = None,
        message: str = "Too many requests. Please try again later.",
    ):
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def retry_after_header(self) -> str:
        if self.retry_after is None:
            return str(self.DEFAULT_RETRY_AFTER)
        return str(self.retry_after)


class SpamRejectedError(SalonException):
    """Raised when a booking fails the anti-spam heuristics.

    The client-facing message is deliberately generic; the specific reason is
    only logged.
    Maps to HTTP 400 Bad Request.
    """
    status_code = 400

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__("Invalid request")


class InvalidBookingError(SalonException):
    """Raised when submitted data fails validation.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400


class NotFoundError(SalonException):
    """Raised when a record or purchase does not exist.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404


class AuthenticationError(SalonException):
    """Raised when admin authentication fails.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class StorageError(SalonException):
    """Raised when the spreadsheet backend fails.

    Maps to HTTP 502 Bad Gateway.
    """
    status_code = 502


class NotConfiguredError(SalonException):
    """Raised when a required integration has no credentials configured."""
    status_code = 500


class NotSupportedError(SalonException):
    """Raised for operations the deployment cannot perform.

    Maps to HTTP 501 Not Implemented.
    """
    status_code = 501

    def __init__(self, message: str, hint: str | None = None):
        self.hint = hint
        super().__init__(message)

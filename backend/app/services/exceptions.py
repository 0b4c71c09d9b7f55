"""Business errors raised by the rewards services.

API handlers translate these into the standard error envelope, so services
never build HTTP responses themselves.
"""


class RewardsError(Exception):
    """Base class for errors raised by the rewards engine."""

    code = "ERROR"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(RewardsError):
    """Missing or malformed input. Raised before any state is touched."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input data"


class NotFoundError(RewardsError):
    """Referenced user or reward does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class NotEligible(RewardsError):
    """Action is not allowed in the current state (e.g. wheel already spun)."""

    code = "NOT_ELIGIBLE"
    status_code = 409
    default_message = "Not eligible"


class ConflictError(RewardsError):
    """Request collides with existing state owned by someone else."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Resource conflict"


class PersistenceError(RewardsError):
    """Underlying store failed. The operation was rolled back."""

    code = "SERVER_ERROR"
    status_code = 500
    default_message = "Internal server error"

"""Application errors — raised by services, rendered as JSON by the API layer."""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidDateRange(ValidationError):
    default_message = "Check-out date must be after check-in date"


class ConflictError(AppError):
    status_code = 400
    default_message = "Selected dates are not available"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Unauthorized access"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidStatusTransition(AppError):
    status_code = 409
    default_message = "Booking cannot change to the requested status"


class StoreError(AppError):
    status_code = 500
    default_message = "Booking store unavailable, please try again"

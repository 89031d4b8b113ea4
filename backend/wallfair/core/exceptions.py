class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Action not allowed"


class ConflictError(AppError):
    status_code = 409
    default_message = "Already exists"


class ValidationError(AppError):
    status_code = 422
    default_message = "Invalid input"


class InternalError(AppError):
    status_code = 500

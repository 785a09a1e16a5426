"""
Application error taxonomy.

Services raise these; the handlers registered in ``taskflow.main`` turn them
into the ``{"status": "error", "message": ...}`` envelope.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = 400
    default_message = "Bad request"


class ValidationFailed(BadRequest):
    default_message = "Validation failed"

    def __init__(self, errors: list[str], message: str | None = None):
        super().__init__(message)
        self.errors = errors


class Conflict(BadRequest):
    # Duplicates are reported as 400, same as other client mistakes
    default_message = "Resource already exists"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Invalid token"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"

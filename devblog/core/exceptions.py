"""
Domain error taxonomy.

Services raise these; the HTTP layer maps ``status_code`` and ``kind`` to the
response. Nothing here depends on the web framework.
"""


class DomainException(Exception):
    kind = "error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainException):
    kind = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)


class ForbiddenError(DomainException):
    kind = "forbidden"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, 403)


class InvalidCursorError(DomainException):
    kind = "invalid_cursor"

    def __init__(self, message: str = "Cursor does not exist"):
        super().__init__(message, 400)


class ConflictError(DomainException):
    kind = "conflict"

    def __init__(self, message: str = "Duplicate entry: already exists"):
        super().__init__(message, 409)


class ValidationFailedError(DomainException):
    kind = "validation_error"

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message, 422)

"""Failure kinds raised by the bug service and mapped to HTTP responses in main.py."""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_IDENTIFIER = "invalid_identifier"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


class BugTrackerError(Exception):
    kind: ErrorKind = ErrorKind.UNEXPECTED
    status_code: int = 500

    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(message)
        self.message = message


class InvalidInputError(BugTrackerError):
    """Payload failed validation. ``errors`` lists every schema failure when there are several."""

    kind = ErrorKind.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors


class InvalidIdentifierError(BugTrackerError):
    kind = ErrorKind.INVALID_IDENTIFIER
    status_code = 400

    def __init__(self, message: str = "Invalid bug ID format"):
        super().__init__(message)


class NotFoundError(BugTrackerError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, message: str = "Bug not found"):
        super().__init__(message)


class ConflictError(BugTrackerError):
    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(self, message: str = "Duplicate field value entered", field: str | None = None):
        super().__init__(message)
        self.field = field


class UnexpectedError(BugTrackerError):
    kind = ErrorKind.UNEXPECTED
    status_code = 500

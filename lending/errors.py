"""Error taxonomy of the lending engine.

Every :class:`LendingError` is an expected, user-facing outcome and carries the
HTTP status the controllers answer with. :class:`InvariantViolation` is not one
of them: it marks a programming error detected mid-transition and aborts the
operation.
"""


class LendingError(Exception):
    code = "LENDING_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(LendingError):
    """Referenced book, user or borrowing record does not exist."""
    code = "NOT_FOUND"
    status_code = 404


class Unavailable(LendingError):
    """Book has no available copies."""
    code = "BOOK_UNAVAILABLE"
    status_code = 409


class BorrowLimitReached(LendingError):
    code = "BORROW_LIMIT_REACHED"


class AlreadyBorrowed(LendingError):
    code = "ALREADY_BORROWED"


class InvalidState(LendingError):
    """Transition is not legal from the record's current status."""
    code = "INVALID_STATUS"


class Conflict(LendingError):
    """Concurrent mutation detected on the same row."""
    code = "CONFLICT"
    status_code = 409


class InvariantViolation(RuntimeError):
    pass

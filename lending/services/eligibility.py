"""May this user borrow this book right now?

``can_borrow`` does no I/O: the caller loads the book, the user's active count
and whether the user already holds the book, then asks. Checks run in a fixed
order and the first failure decides the answer.
"""
from dataclasses import dataclass

from lending.errors import (
    AlreadyBorrowed,
    BorrowLimitReached,
    LendingError,
    NotFound,
    Unavailable,
)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: LendingError | None = None

    def raise_if_denied(self):
        if not self.allowed:
            raise self.error


ALLOWED = Decision(allowed=True)


def _deny(error: LendingError) -> Decision:
    return Decision(allowed=False, error=error)


def borrow_limit_for(user, default_limit: int) -> int:
    if user.max_borrow_limit is None:
        return default_limit
    return user.max_borrow_limit


def can_borrow(user, book, active_count: int, holds_same_book: bool, default_limit: int = 5) -> Decision:
    borrow_limit = borrow_limit_for(user, default_limit)

    if book is None:
        return _deny(NotFound("Book not found"))

    if book.available_copies <= 0:
        return _deny(Unavailable("Book is not available", {"book_id": book.id}))

    if active_count >= borrow_limit:
        return _deny(BorrowLimitReached(
            f"You have reached your borrow limit ({borrow_limit})",
            {"limit": borrow_limit, "active": active_count},
        ))

    if holds_same_book:
        return _deny(AlreadyBorrowed("You already have this book borrowed", {"book_id": book.id}))

    return ALLOWED

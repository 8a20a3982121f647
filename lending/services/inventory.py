from flask import current_app
from sqlalchemy.exc import IntegrityError

from lending.errors import InvariantViolation, NotFound, Unavailable
from lending.repositories.book_repo import BookRepo


class BookInventory:
    """Availability counters of books.

    ``reserve`` and ``release`` are single conditional UPDATE statements, so
    concurrent callers racing for the last copy are linearized by the database.
    Neither commits: they run inside the caller's transaction.
    """

    def __init__(self, books: BookRepo):
        self.books = books

    def find(self, book_id: int):
        return self.books.get(book_id, fresh=True)

    def get(self, book_id: int):
        book = self.books.get(book_id, fresh=True)
        if not book:
            raise NotFound("Book not found", {"book_id": book_id})
        return book

    def reserve(self, book_id: int):
        try:
            changed = self.books.decrement_available(book_id)
        except IntegrityError as e:
            raise InvariantViolation(f"reserve broke the copy counters of book {book_id}") from e

        book = self.books.get(book_id, fresh=True)
        if not book:
            raise NotFound("Book not found", {"book_id": book_id})
        if not changed:
            raise Unavailable("Book is not available", {"book_id": book_id})

        self._check(book)
        return book

    def release(self, book_id: int):
        try:
            changed = self.books.increment_available(book_id)
        except IntegrityError as e:
            raise InvariantViolation(f"release broke the copy counters of book {book_id}") from e

        book = self.books.get(book_id, fresh=True)
        if not book:
            raise NotFound("Book not found", {"book_id": book_id})
        if not changed:
            current_app.logger.warning(
                f"[inventory] release on book {book_id} clamped at total_copies={book.total_copies}"
            )

        self._check(book)
        return book

    @staticmethod
    def _check(book):
        if not 0 <= book.available_copies <= book.total_copies:
            current_app.logger.error(
                f"[inventory] book {book.id} has available={book.available_copies} total={book.total_copies}"
            )
            raise InvariantViolation(f"copy counters of book {book.id} are inconsistent")

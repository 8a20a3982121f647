from sqlalchemy import select, update

from lending.models.book import Book


class BookRepo:
    def __init__(self, session):
        self.session = session

    def list_all(self, library_id: int | None = None):
        q = select(Book)
        if library_id is not None:
            q = q.where(Book.library_id == library_id)
        return self.session.execute(q.order_by(Book.id.desc())).scalars().all()

    def get(self, book_id: int, fresh: bool = False):
        if fresh:
            return self.session.get(Book, book_id, populate_existing=True)
        return self.session.get(Book, book_id)

    def decrement_available(self, book_id: int) -> int:
        """Conditional decrement; returns affected row count (0 or 1)."""
        stmt = (
            update(Book)
            .where(Book.id == book_id, Book.available_copies > 0)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

    def increment_available(self, book_id: int) -> int:
        """Conditional increment capped at total; returns affected row count."""
        stmt = (
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount

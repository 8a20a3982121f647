from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.dialects import mssql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateIndex

from lending.errors import InvariantViolation
from lending.extensions import db
from lending.models import Book, Borrowing


def test_book_defaults_available_to_total(library) -> None:
    book = Book(title="T", author="A", library_id=library.id, total_copies=3)
    assert book.available_copies == 3
    assert book.status == "available"


def test_book_status_follows_available_copies(library) -> None:
    book = Book(title="T", author="A", library_id=library.id, total_copies=1, available_copies=0)
    assert book.status == "unavailable"
    book.available_copies = 1
    assert book.status == "available"


def test_book_status_cannot_be_assigned(make_book) -> None:
    book = make_book(total_copies=1, available_copies=0)
    with pytest.raises(AttributeError):
        book.status = "available"
    assert book.status == "unavailable"


def test_book_status_is_queryable(make_book) -> None:
    empty = make_book(total_copies=1, available_copies=0, title="Empty")
    make_book(total_copies=2, title="Stocked")

    rows = Book.query.filter(Book.status == "unavailable").all()
    assert [b.id for b in rows] == [empty.id]


@pytest.mark.parametrize("total, available", [(1, 2), (-1, 0), (2, -1)])
def test_book_rejects_broken_counters(library, total, available) -> None:
    with pytest.raises(InvariantViolation):
        Book(title="T", author="A", library_id=library.id, total_copies=total, available_copies=available)


def test_book_total_cannot_drop_below_available(make_book) -> None:
    book = make_book(total_copies=2)
    with pytest.raises(InvariantViolation):
        book.total_copies = 1


def test_fine_requires_fined_flag(alice, make_book) -> None:
    book = make_book()
    record = Borrowing(user_id=alice.id, book_id=book.id, library_id=book.library_id)
    with pytest.raises(InvariantViolation):
        record.fine_amount = Decimal("10")
    with pytest.raises(InvariantViolation):
        record.is_fined = True
        record.fine_amount = Decimal("-1")


def test_overdue_is_never_stored(alice, make_book) -> None:
    book = make_book()
    record = Borrowing(user_id=alice.id, book_id=book.id, library_id=book.library_id)
    with pytest.raises(InvariantViolation):
        record.status = "overdue"


def test_new_borrowing_is_pending_without_dates(alice, make_book) -> None:
    book = make_book()
    record = Borrowing(user_id=alice.id, book_id=book.id, library_id=book.library_id)
    db.session.add(record)
    db.session.commit()

    assert record.status == "pending"
    assert record.borrow_date is None
    assert record.due_date is None
    assert record.fine_amount == 0
    assert record.is_fined is False
    assert record.version_id == 1


def _fined_record(alice, book):
    record = Borrowing(user_id=alice.id, book_id=book.id, library_id=book.library_id)
    record.mark_returned(datetime(2024, 3, 20), Decimal("10000"))
    db.session.add(record)
    db.session.commit()
    return record


def test_fined_flag_cannot_be_cleared(alice, make_book) -> None:
    record = _fined_record(alice, make_book())

    with pytest.raises(InvariantViolation):
        record.is_fined = False
    assert record.is_fined is True


def test_database_rejects_fine_without_flag(alice, make_book) -> None:
    record = _fined_record(alice, make_book())

    with pytest.raises(IntegrityError):
        db.session.execute(
            update(Borrowing).where(Borrowing.id == record.id).values(is_fined=False)
        )
    db.session.rollback()

    stored = db.session.get(Borrowing, record.id, populate_existing=True)
    assert (stored.fine_amount, stored.is_fined) == (Decimal("10000.00"), True)


@pytest.mark.parametrize("dialect", [sqlite.dialect(), postgresql.dialect(), mssql.dialect()])
def test_active_index_is_partial_on_every_backend(dialect) -> None:
    index = next(i for i in Borrowing.__table__.indexes if i.name == "uq_borrowings_active_user_book")
    ddl = str(CreateIndex(index).compile(dialect=dialect))
    assert "WHERE status IN ('pending', 'borrowed')" in ddl

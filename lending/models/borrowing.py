from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import validates

from lending.constants import ACTIVE_STATUSES, BorrowingStatus
from lending.errors import InvariantViolation
from lending.extensions import db
from lending.utils.clock import utcnow


class Borrowing(db.Model):
    """One loan attempt, from request to return.

    ``overdue`` is never written to ``status``; it is reported for borrowed
    records whose due date has passed (see ``lending.utils.projections``).
    """

    __tablename__ = "borrowings"
    __table_args__ = (
        db.CheckConstraint("fine_amount >= 0", name="ck_borrowings_fine_non_negative"),
        db.CheckConstraint("is_fined OR fine_amount = 0", name="ck_borrowings_fine_requires_flag"),
        # one active record per (user, book)
        db.Index(
            "uq_borrowings_active_user_book",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=db.text("status IN ('pending', 'borrowed')"),
            postgresql_where=db.text("status IN ('pending', 'borrowed')"),
            mssql_where=db.text("status IN ('pending', 'borrowed')"),
        ),
        db.Index("ix_borrowings_user_status", "user_id", "status"),
        db.Index("ix_borrowings_library_status", "library_id", "status"),
        db.Index("ix_borrowings_due_status", "due_date", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)
    library_id = db.Column(db.Integer, db.ForeignKey("libraries.id"), nullable=False)

    borrow_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    return_date = db.Column(db.DateTime, nullable=True)
    actual_return_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BorrowingStatus.PENDING.value)

    fine_amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    is_fined = db.Column(db.Boolean, nullable=False, default=False)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    user = db.relationship("User", viewonly=True)
    book = db.relationship("Book", viewonly=True)
    library = db.relationship("Library", viewonly=True)

    @validates("fine_amount")
    def _validate_fine(self, _key, value):
        value = Decimal(str(value if value is not None else 0))
        if value < 0:
            raise InvariantViolation(f"fine_amount must be >= 0, got {value}")
        if value > 0 and not self.is_fined:
            raise InvariantViolation("fine_amount set on a record that is not fined")
        return value

    @validates("is_fined")
    def _validate_is_fined(self, _key, value):
        if not value and self.fine_amount is not None and Decimal(str(self.fine_amount)) > 0:
            raise InvariantViolation("cannot clear is_fined while a fine is recorded")
        return value

    @validates("status")
    def _validate_status(self, _key, value):
        if value == BorrowingStatus.OVERDUE.value:
            raise InvariantViolation("overdue is derived and never stored")
        if value not in {s.value for s in BorrowingStatus}:
            raise InvariantViolation(f"unknown borrowing status {value!r}")
        return value

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.status == BorrowingStatus.BORROWED.value
            and self.due_date is not None
            and now > self.due_date
        )

    def effective_status(self, now: datetime) -> str:
        if self.is_overdue(now):
            return BorrowingStatus.OVERDUE.value
        return self.status

    def mark_borrowed(self, now: datetime, loan_period_days: int):
        self.status = BorrowingStatus.BORROWED.value
        self.borrow_date = now
        self.due_date = now + timedelta(days=loan_period_days)

    def mark_returned(self, now: datetime, fine_amount: Decimal):
        if fine_amount > 0:
            self.is_fined = True
            self.fine_amount = fine_amount
        self.status = BorrowingStatus.RETURNED.value
        self.return_date = now
        self.actual_return_date = now

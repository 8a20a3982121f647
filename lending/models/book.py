from sqlalchemy import case
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import validates

from lending.constants import BookStatus
from lending.errors import InvariantViolation
from lending.extensions import db
from lending.utils.clock import utcnow


def derive_status(available_copies: int) -> str:
    if available_copies > 0:
        return BookStatus.AVAILABLE.value
    return BookStatus.UNAVAILABLE.value


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("total_copies >= 0", name="ck_books_total_non_negative"),
        db.CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_available_within_total",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), nullable=True, index=True)

    library_id = db.Column(db.Integer, db.ForeignKey("libraries.id"), nullable=False, index=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    library = db.relationship("Library", viewonly=True)

    def __init__(self, total_copies: int = 1, available_copies: int | None = None, **kwargs):
        # total first, so the available check has something to compare against
        super().__init__(**kwargs)
        self.total_copies = total_copies
        self.available_copies = total_copies if available_copies is None else available_copies

    # read-only: there is no setter, so status cannot drift from the counters
    @hybrid_property
    def status(self) -> str:
        return derive_status(self.available_copies)

    @status.inplace.expression
    @classmethod
    def _status_expression(cls):
        return case(
            (cls.available_copies > 0, BookStatus.AVAILABLE.value),
            else_=BookStatus.UNAVAILABLE.value,
        )

    @validates("total_copies")
    def _validate_total(self, _key, value):
        if value is None or value < 0:
            raise InvariantViolation(f"total_copies must be >= 0, got {value}")
        if self.available_copies is not None and self.available_copies > value:
            raise InvariantViolation(
                f"total_copies={value} is below available_copies={self.available_copies}"
            )
        return value

    @validates("available_copies")
    def _validate_available(self, _key, value):
        if value is None or value < 0:
            raise InvariantViolation(f"available_copies must be >= 0, got {value}")
        if self.total_copies is not None and value > self.total_copies:
            raise InvariantViolation(
                f"available_copies={value} exceeds total_copies={self.total_copies}"
            )
        return value

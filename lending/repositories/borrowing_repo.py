from datetime import datetime

from sqlalchemy import func, select

from lending.constants import ACTIVE_STATUSES, BorrowingStatus
from lending.models.borrowing import Borrowing


class BorrowingRepo:
    def __init__(self, session):
        self.session = session

    def get(self, borrowing_id: int):
        return self.session.get(Borrowing, borrowing_id)

    def create(self, borrowing: Borrowing):
        self.session.add(borrowing)
        self.session.flush()
        return borrowing

    def update(self, borrowing: Borrowing):
        # flush now so the version check fails inside the transition
        self.session.flush()
        return borrowing

    def count_active_by_user(self, user_id: int) -> int:
        q = select(func.count(Borrowing.id)).where(
            Borrowing.user_id == user_id,
            Borrowing.status.in_(ACTIVE_STATUSES),
        )
        return self.session.execute(q).scalar_one()

    def find_active_by_user_and_book(self, user_id: int, book_id: int):
        q = select(Borrowing).where(
            Borrowing.user_id == user_id,
            Borrowing.book_id == book_id,
            Borrowing.status.in_(ACTIVE_STATUSES),
        )
        return self.session.execute(q).scalars().first()

    def _filtered(self, now: datetime, status=None, library_id=None, user_id=None):
        q = select(Borrowing)
        if status == BorrowingStatus.OVERDUE.value:
            q = q.where(
                Borrowing.status == BorrowingStatus.BORROWED.value,
                Borrowing.due_date < now,
            )
        elif status:
            q = q.where(Borrowing.status == status)
        if library_id is not None:
            q = q.where(Borrowing.library_id == library_id)
        if user_id is not None:
            q = q.where(Borrowing.user_id == user_id)
        return q

    def page(self, now: datetime, offset: int, limit: int, **filters):
        """Returns (rows, total) newest first."""
        q = self._filtered(now, **filters)
        total = self.session.execute(
            select(func.count()).select_from(q.subquery())
        ).scalar_one()
        rows = self.session.execute(
            q.order_by(Borrowing.created_at.desc(), Borrowing.id.desc()).offset(offset).limit(limit)
        ).scalars().all()
        return rows, total

    def list_fined(self, user_id: int | None = None):
        q = select(Borrowing).where(Borrowing.is_fined.is_(True))
        if user_id is not None:
            q = q.where(Borrowing.user_id == user_id)
        return self.session.execute(q.order_by(Borrowing.id.desc())).scalars().all()

    def find_overdue(self, now: datetime):
        return self.session.execute(
            select(Borrowing).where(
                Borrowing.status == BorrowingStatus.BORROWED.value,
                Borrowing.due_date < now,
            )
        ).scalars().all()

    def find_due_between(self, start: datetime, end: datetime):
        return self.session.execute(
            select(Borrowing).where(
                Borrowing.status == BorrowingStatus.BORROWED.value,
                Borrowing.due_date >= start,
                Borrowing.due_date <= end,
            )
        ).scalars().all()

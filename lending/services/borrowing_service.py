from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from lending.config import LendingSettings
from lending.constants import RETURNABLE_STATUSES, BorrowingStatus, NotificationKind
from lending.errors import AlreadyBorrowed, Conflict, InvalidState, NotFound
from lending.models.borrowing import Borrowing
from lending.services.eligibility import can_borrow
from lending.services.fines import fine, overdue_days
from lending.services.notifier import LifecycleEvent
from lending.utils.clock import utcnow
from lending.utils.pagination import format_pagination, page_window


class BorrowingService:
    """Borrowing lifecycle: pending -> borrowed -> returned.

    Each transition is one transaction with a single commit point; the record
    change and the inventory change land together or not at all. Events go to
    the notifier only after the commit, and nothing the notifier does can undo
    or fail the transition.
    """

    def __init__(self, session, records, inventory, users, notifier,
                 settings: LendingSettings | None = None, clock=utcnow):
        self.session = session
        self.records = records
        self.inventory = inventory
        self.users = users
        self.notifier = notifier
        self.settings = settings or LendingSettings()
        self.clock = clock

    @contextmanager
    def _unit_of_work(self, action: str, borrowing_id=None):
        try:
            yield
            self.session.commit()
        except StaleDataError as e:
            self.session.rollback()
            current_app.logger.info(f"[borrowing] {action} on #{borrowing_id} lost a concurrent update")
            raise Conflict(
                "Borrowing was modified concurrently, please retry",
                {"borrowing_id": borrowing_id},
            ) from e
        except Exception:
            self.session.rollback()
            raise

    def _notify(self, event: LifecycleEvent):
        try:
            self.notifier.emit(event)
        except Exception:
            current_app.logger.exception(f"[borrowing] notifier failed for {event.kind}")

    def _event(self, record: Borrowing, kind: NotificationKind, **extra) -> LifecycleEvent:
        payload = {
            "borrowing_id": record.id,
            "book_id": record.book_id,
            "book_title": record.book.title if record.book else None,
            "library_id": record.library_id,
        }
        payload.update(extra)
        return LifecycleEvent(recipient_user_id=record.user_id, kind=kind.value, payload=payload)

    # ----------------- transitions -----------------

    def request_borrow(self, user_id: int, book_id: int, library_id: int | None = None,
                       notes: str | None = None) -> Borrowing:
        try:
            with self._unit_of_work("request_borrow"):
                # the user-row write comes first so the limit count below is
                # taken under the lock
                user_exists = self.users.lock_for_borrow(user_id)

                book = self.inventory.find(book_id)
                if not book:
                    raise NotFound("Book not found", {"book_id": book_id})
                if not user_exists:
                    raise NotFound("User not found", {"user_id": user_id})

                user = self.users.get_by_id(user_id)
                active = self.records.count_active_by_user(user.id)
                holds = self.records.find_active_by_user_and_book(user.id, book_id) is not None

                decision = can_borrow(user, book, active, holds, self.settings.max_borrow_limit)
                decision.raise_if_denied()

                record = Borrowing(
                    user_id=user.id,
                    book_id=book.id,
                    library_id=library_id or book.library_id,
                    notes=notes,
                    status=BorrowingStatus.PENDING.value,
                )
                self.records.create(record)
        except IntegrityError as e:
            # the active (user, book) unique index caught a concurrent duplicate request
            if self.records.find_active_by_user_and_book(user_id, book_id) is not None:
                raise AlreadyBorrowed(
                    "You already have this book borrowed", {"book_id": book_id}
                ) from e
            raise

        current_app.logger.info(f"[borrowing] #{record.id} requested user={user_id} book={book_id}")
        self._notify(self._event(record, NotificationKind.BORROW_REQUESTED))
        return record

    def confirm_pickup(self, borrowing_id: int) -> Borrowing:
        with self._unit_of_work("confirm_pickup", borrowing_id):
            record = self.records.get(borrowing_id)
            if not record:
                raise NotFound("Borrowing not found", {"borrowing_id": borrowing_id})

            if record.status != BorrowingStatus.PENDING.value:
                raise InvalidState(
                    f"Cannot confirm pickup of a {record.status} borrowing",
                    {"borrowing_id": borrowing_id, "status": record.status},
                )

            record.mark_borrowed(self.clock(), self.settings.loan_period_days)
            self.records.update(record)
            # availability is re-checked here, not trusted from request time
            self.inventory.reserve(record.book_id)

        current_app.logger.info(f"[borrowing] #{record.id} picked up, due {record.due_date}")
        self._notify(self._event(
            record, NotificationKind.BORROW_CONFIRMED, due_date=record.due_date.isoformat(),
        ))
        return record

    def return_book(self, borrowing_id: int) -> Borrowing:
        with self._unit_of_work("return_book", borrowing_id):
            record = self.records.get(borrowing_id)
            if not record:
                raise NotFound("Borrowing not found", {"borrowing_id": borrowing_id})

            now = self.clock()
            status = record.effective_status(now)
            if status not in RETURNABLE_STATUSES:
                raise InvalidState(
                    f"Cannot return a {status} borrowing",
                    {"borrowing_id": borrowing_id, "status": status},
                )

            days = overdue_days(record.due_date, now)
            record.mark_returned(now, fine(days, self.settings.fine_per_day))
            self.records.update(record)
            self.inventory.release(record.book_id)

        current_app.logger.info(
            f"[borrowing] #{record.id} returned, overdue_days={days} fine={record.fine_amount}"
        )
        self._notify(self._event(
            record,
            NotificationKind.BOOK_RETURNED,
            is_fined=bool(record.is_fined),
            fine_amount=str(record.fine_amount),
            overdue_days=days,
        ))
        return record

    # ----------------- reads -----------------

    def get_borrowing(self, borrowing_id: int) -> Borrowing:
        record = self.records.get(borrowing_id)
        if not record:
            raise NotFound("Borrowing not found", {"borrowing_id": borrowing_id})
        return record

    def list_borrowings(self, status=None, library_id=None, user_id=None, page=1, limit=None):
        page, limit, offset = page_window(
            page, limit, self.settings.default_page_limit, self.settings.max_page_limit
        )
        rows, total = self.records.page(
            self.clock(), offset, limit, status=status, library_id=library_id, user_id=user_id,
        )
        return rows, format_pagination(page, limit, total)

    def list_my_borrowings(self, user_id: int, status=None, page=1, limit=None):
        return self.list_borrowings(status=status, user_id=user_id, page=page, limit=limit)

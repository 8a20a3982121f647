# lending/tasks/late_check.py
from datetime import timedelta

from flask import current_app

from lending.constants import NotificationKind
from lending.extensions import db
from lending.repositories.borrowing_repo import BorrowingRepo
from lending.repositories.notification_repo import NotificationRepo
from lending.services.fines import overdue_days
from lending.services.notifier import LifecycleEvent


def _reminder(b, kind: NotificationKind, now) -> LifecycleEvent:
    return LifecycleEvent(
        recipient_user_id=b.user_id,
        kind=kind.value,
        payload={
            "borrowing_id": b.id,
            "book_id": b.book_id,
            "book_title": b.book.title if b.book else None,
            "due_date": b.due_date.isoformat(),
            "overdue_days": overdue_days(b.due_date, now),
        },
    )


def run_late_check_job(app, now=None) -> dict:
    """
    Sends reminders for borrowed books that are overdue or due soon.
    - overdue: due_date passed, still borrowed
    - due_soon: due_date within DUE_SOON_HOURS
    Each reminder goes out once per borrowing. Status is not touched: overdue
    is derived from due_date whenever a record is read.
    """
    with app.app_context():
        try:
            # same clock the engine uses to derive overdue
            now = now or current_app.extensions["borrowing_service"].clock()
            due_soon_limit = now + timedelta(hours=current_app.config["DUE_SOON_HOURS"])

            records = BorrowingRepo(db.session)
            notifications = NotificationRepo(db.session)
            notifier = current_app.extensions["lending_notifier"]

            overdue_rows = records.find_overdue(now)
            due_soon_rows = records.find_due_between(now, due_soon_limit)

            # build everything first; every emit commits and expires the rows
            events = []
            for b in overdue_rows:
                if not notifications.already_sent(b.id, NotificationKind.OVERDUE_REMINDER.value):
                    events.append(_reminder(b, NotificationKind.OVERDUE_REMINDER, now))
            for b in due_soon_rows:
                if not notifications.already_sent(b.id, NotificationKind.DUE_SOON_REMINDER.value):
                    events.append(_reminder(b, NotificationKind.DUE_SOON_REMINDER, now))

            for event in events:
                notifier.emit(event)

            summary = {
                "overdue": len(overdue_rows),
                "due_soon": len(due_soon_rows),
                "reminders_sent": len(events),
            }
            current_app.logger.info(
                f"[late_check] overdue={summary['overdue']} due_soon={summary['due_soon']} "
                f"reminders_sent={summary['reminders_sent']}"
            )
            return summary

        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[late_check] error: {e}")
            raise

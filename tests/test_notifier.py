from datetime import timedelta

import pytest

from lending.extensions import db, mail
from lending.models import Borrowing, Notification
from lending.services.notifier import LifecycleEvent, MailNotifier
from lending.tasks.late_check import run_late_check_job


@pytest.fixture
def notifier():
    # let create_app build the real MailNotifier
    return None


def test_app_uses_mail_notifier(app) -> None:
    assert isinstance(app.extensions["lending_notifier"], MailNotifier)


def test_lifecycle_events_are_stored_and_mailed(service, alice, make_book) -> None:
    book = make_book(title="Refactoring")

    with mail.record_messages() as outbox:
        record = service.request_borrow(alice.id, book.id)
        service.confirm_pickup(record.id)

    assert [m.recipients for m in outbox] == [["alice@example.com"], ["alice@example.com"]]
    assert "Refactoring" in outbox[0].body

    rows = Notification.query.order_by(Notification.id).all()
    assert [n.kind for n in rows] == ["borrow-requested", "borrow-confirmed"]
    assert all(n.success for n in rows)
    assert rows[0].borrowing_id == record.id


def test_return_notification_mentions_fine(service, clock, alice, make_book) -> None:
    book = make_book()
    record = service.confirm_pickup(service.request_borrow(alice.id, book.id).id)
    clock.now = record.due_date + timedelta(days=2)
    service.return_book(record.id)

    last = Notification.query.order_by(Notification.id.desc()).first()
    assert last.kind == "book-returned"
    assert "Fine amount: 10000" in last.message


def test_mail_failure_is_recorded_not_raised(app, service, alice, make_book, monkeypatch) -> None:
    def boom(message):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "send", boom)
    book = make_book()

    record = service.request_borrow(alice.id, book.id)

    assert db.session.get(Borrowing, record.id).status == "pending"
    n = Notification.query.one()
    assert n.success is False
    assert "smtp down" in n.error_message


def test_user_without_email(service, make_user, make_book) -> None:
    ghost = make_user("ghost", email=None)
    book = make_book()

    service.request_borrow(ghost.id, book.id)

    n = Notification.query.one()
    assert n.success is False
    assert n.error_message == "missing_email"


def test_emit_swallows_storage_errors(app, alice, monkeypatch) -> None:
    notifier = app.extensions["lending_notifier"]

    def broken_log(entry):
        raise RuntimeError("disk full")

    monkeypatch.setattr(notifier.notifications, "log", broken_log)
    notifier.emit(LifecycleEvent(recipient_user_id=alice.id, kind="borrow-requested"))


def test_late_check_sends_each_reminder_once(app, service, clock, alice, bob, make_book) -> None:
    late_book, soon_book = make_book(title="Late"), make_book(title="Soon")

    late = service.confirm_pickup(service.request_borrow(alice.id, late_book.id).id)
    clock.advance(days=3)
    soon = service.confirm_pickup(service.request_borrow(bob.id, soon_book.id).id)

    # late is 2 days overdue, soon is due in 12 hours
    now = soon.due_date - timedelta(hours=12)
    summary = run_late_check_job(app, now=now)
    assert summary == {"overdue": 1, "due_soon": 1, "reminders_sent": 2}

    reminders = Notification.query.filter(Notification.kind.like("%reminder")).all()
    by_kind = {n.kind: n for n in reminders}
    assert by_kind["overdue-reminder"].borrowing_id == late.id
    assert by_kind["due-soon-reminder"].borrowing_id == soon.id

    summary = run_late_check_job(app, now=now)
    assert summary["reminders_sent"] == 0

    # the sweep never rewrites status
    assert db.session.get(Borrowing, late.id).status == "borrowed"


def test_late_check_uses_the_engine_clock(app, service, clock, alice, make_book) -> None:
    record = service.confirm_pickup(service.request_borrow(alice.id, make_book().id).id)

    # wall-clock time is long past this due date, the engine clock is not
    assert run_late_check_job(app) == {"overdue": 0, "due_soon": 0, "reminders_sent": 0}

    clock.now = record.due_date + timedelta(days=1)
    assert run_late_check_job(app)["overdue"] == 1

    reminder = Notification.query.filter_by(kind="overdue-reminder").one()
    assert reminder.borrowing_id == record.id


def test_notifications_listing(app, service, alice, make_book) -> None:
    books = [make_book(title=f"Book {i}") for i in range(3)]
    for book in books:
        service.request_borrow(alice.id, book.id)

    notifications = app.extensions["notification_service"]
    rows, unread, meta = notifications.list_for_user(alice.id, limit=2)
    assert len(rows) == 2
    assert unread == 3
    assert meta["total"] == 3

    notifications.mark_read(rows[0].id, alice.id)
    assert notifications.list_for_user(alice.id)[1] == 2
    assert notifications.mark_all_read(alice.id) == 2
    assert notifications.list_for_user(alice.id, unread_only=True)[0] == []

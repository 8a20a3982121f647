from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from flask_mail import Message

from lending.constants import NotificationKind
from lending.models.notification import Notification
from lending.models.user import User
from lending.repositories.notification_repo import NotificationRepo


@dataclass(frozen=True)
class LifecycleEvent:
    recipient_user_id: int
    kind: str
    payload: dict = field(default_factory=dict)


TITLES = {
    NotificationKind.BORROW_REQUESTED.value: "Borrowing Request Created",
    NotificationKind.BORROW_CONFIRMED.value: "Book Picked Up",
    NotificationKind.BOOK_RETURNED.value: "Book Returned",
    NotificationKind.OVERDUE_REMINDER.value: "Overdue Book",
    NotificationKind.DUE_SOON_REMINDER.value: "Due Date Approaching",
}


def render_message(event: LifecycleEvent) -> str:
    p = event.payload
    title = p.get("book_title") or f"Book #{p.get('book_id', '-')}"
    kind = event.kind

    if kind == NotificationKind.BORROW_REQUESTED.value:
        return f"Your request to borrow \"{title}\" has been submitted."
    if kind == NotificationKind.BORROW_CONFIRMED.value:
        return f"You have picked up \"{title}\". Due date: {p.get('due_date')}"
    if kind == NotificationKind.BOOK_RETURNED.value:
        message = f"You have returned \"{title}\"."
        if p.get("is_fined"):
            message += f" Fine amount: {p.get('fine_amount')}"
        return message
    if kind == NotificationKind.OVERDUE_REMINDER.value:
        return (
            f"\"{title}\" was due on {p.get('due_date')} and is {p.get('overdue_days')} day(s) overdue. "
            "Please return it as soon as possible."
        )
    if kind == NotificationKind.DUE_SOON_REMINDER.value:
        return f"\"{title}\" is due on {p.get('due_date')}. Don't forget to return it."
    return p.get("message", "")


class MailNotifier:
    """Stores an in-app notification and mails the recipient.

    ``emit`` is called after the lifecycle transition has committed and never
    raises: delivery problems are logged and recorded on the notification row.
    """

    def __init__(self, session, mail):
        self.session = session
        self.mail = mail
        self.notifications = NotificationRepo(session)

    def send_email(self, to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        try:
            self.mail.send(Message(subject=subject, recipients=[to_email], body=body))
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[notifier] mail to {to_email} failed: {e}")
            return False, str(e)

    def emit(self, event: LifecycleEvent):
        try:
            self._deliver(event)
        except Exception:
            self.session.rollback()
            current_app.logger.exception(
                f"[notifier] dropping {event.kind} event for user {event.recipient_user_id}"
            )

    def _deliver(self, event: LifecycleEvent):
        user = self.session.get(User, event.recipient_user_id)
        title = TITLES.get(event.kind, "Library Notification")
        body = render_message(event)

        to_email = user.email if user else None
        if to_email:
            ok, err = self.send_email(to_email, f"Library: {title}", body)
        else:
            ok, err = False, "missing_email"

        self.notifications.log(Notification(
            user_id=event.recipient_user_id,
            borrowing_id=event.payload.get("borrowing_id"),
            kind=event.kind,
            title=title,
            message=body,
            email=to_email,
            success=ok,
            error_message=err,
        ))

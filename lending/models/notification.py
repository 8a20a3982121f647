from lending.utils.clock import utcnow
from lending.extensions import db


class Notification(db.Model):
    """In-app notification plus the outcome of its mail delivery."""

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    borrowing_id = db.Column(db.Integer, db.ForeignKey("borrowings.id"), nullable=True, index=True)

    # borrow-requested, borrow-confirmed, book-returned, overdue-reminder, due-soon-reminder
    kind = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.String(1000), nullable=True)

    email = db.Column(db.String(255), nullable=True)
    success = db.Column(db.Boolean, nullable=False, default=False)
    error_message = db.Column(db.String(500), nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, nullable=False, default=utcnow)

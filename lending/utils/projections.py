"""JSON-ready views of models for API responses.

Foreign keys always come out as plain ids; related titles/names are added as
separate, optional fields.
"""
from datetime import datetime

from lending.services.fines import fine, overdue_days


def _iso(value):
    return value.isoformat() if value else None


def book_to_dict(b) -> dict:
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "library_id": b.library_id,
        "total_copies": b.total_copies,
        "available_copies": b.available_copies,
        "status": b.status,
    }


def borrowing_to_dict(x, now: datetime, fine_per_day) -> dict:
    days = overdue_days(x.due_date, now) if x.is_active else 0
    if x.is_fined:
        accrued = x.fine_amount
    else:
        accrued = fine(days, fine_per_day)

    return {
        "id": x.id,
        "user_id": x.user_id,
        "book_id": x.book_id,
        "library_id": x.library_id,
        "book_title": x.book.title if x.book else None,
        "status": x.status,
        "display_status": x.effective_status(now),
        "borrow_date": _iso(x.borrow_date),
        "due_date": _iso(x.due_date),
        "return_date": _iso(x.return_date),
        "actual_return_date": _iso(x.actual_return_date),
        "overdue_days": days,
        "fine_amount": float(x.fine_amount or 0),
        "accrued_fine": float(accrued),
        "is_fined": bool(x.is_fined),
        "notes": x.notes,
        "created_at": _iso(x.created_at),
    }


def notification_to_dict(n) -> dict:
    return {
        "id": n.id,
        "kind": n.kind,
        "title": n.title,
        "message": n.message,
        "borrowing_id": n.borrowing_id,
        "is_read": bool(n.is_read),
        "delivered": bool(n.success),
        "sent_at": _iso(n.sent_at),
    }

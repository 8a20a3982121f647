import enum


class BorrowingStatus(str, enum.Enum):
    PENDING = "pending"
    BORROWED = "borrowed"
    RETURNED = "returned"
    # Reported for borrowed records past their due date; never stored.
    OVERDUE = "overdue"


ACTIVE_STATUSES = (BorrowingStatus.PENDING.value, BorrowingStatus.BORROWED.value)
RETURNABLE_STATUSES = (BorrowingStatus.BORROWED.value, BorrowingStatus.OVERDUE.value)


class BookStatus(str, enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class Role(str, enum.Enum):
    USER = "user"
    LIBRARIAN = "librarian"
    ADMIN = "admin"


STAFF_ROLES = (Role.LIBRARIAN.value, Role.ADMIN.value)


class NotificationKind(str, enum.Enum):
    BORROW_REQUESTED = "borrow-requested"
    BORROW_CONFIRMED = "borrow-confirmed"
    BOOK_RETURNED = "book-returned"
    OVERDUE_REMINDER = "overdue-reminder"
    DUE_SOON_REMINDER = "due-soon-reminder"

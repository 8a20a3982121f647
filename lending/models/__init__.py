from lending.models.library import Library
from lending.models.user import User
from lending.models.book import Book
from lending.models.borrowing import Borrowing
from lending.models.notification import Notification

__all__ = ["Library", "User", "Book", "Borrowing", "Notification"]

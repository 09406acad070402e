from lending.models.book import Book
from lending.models.user import User
from lending.models.borrow_record import BorrowRecord, BorrowStatus
from lending.models.notification_log import NotificationLog

__all__ = ["Book", "User", "BorrowRecord", "BorrowStatus", "NotificationLog"]

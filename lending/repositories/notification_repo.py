from lending.models.notification_log import NotificationLog
from lending.extensions import db

class NotificationRepo:
    @staticmethod
    def already_sent(borrow_id: int, notif_type: str = "overdue") -> bool:
        return NotificationLog.query.filter_by(borrow_id=borrow_id, type=notif_type, success=True).first() is not None

    @staticmethod
    def failed_attempts(borrow_id: int, notif_type: str = "overdue") -> int:
        return NotificationLog.query.filter_by(borrow_id=borrow_id, type=notif_type, success=False).count()

    @staticmethod
    def add(entry: NotificationLog):
        # caller commits
        db.session.add(entry)
        return entry

# lending/services/mail_service.py
from __future__ import annotations

from datetime import datetime
from flask import current_app
from flask_mail import Message

from lending.extensions import mail
from lending.models.notification_log import NotificationLog
from lending.repositories.notification_repo import NotificationRepo


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[MailService] could not send mail to {to_email}: {e}")
            return False, str(e)

    @staticmethod
    def log_notification(
        borrow_id: int,
        notif_type: str,
        to_email: str | None,
        message: str,
        success: bool,
        error: str | None = None,
    ) -> NotificationLog:
        # no commit here, the job commits once at the end
        return NotificationRepo.add(NotificationLog(
            borrow_id=borrow_id,
            type=notif_type,
            email=to_email,
            message=message,
            success=bool(success),
            error_message=error,
            sent_at=datetime.utcnow(),
        ))

    @staticmethod
    def send_overdue_notice(record, fine: int) -> bool:
        user = record.user
        to_email = user.email if user else None
        username = user.username if user else "reader"
        book_title = record.book.title if record.book else f"Book #{record.book_id}"

        body = (
            f"Hello {username},\n\n"
            f"'{book_title}' was due on {record.due_date:%Y-%m-%d}.\n"
            f"Fine accrued so far: {fine}\n\n"
            "Please return it as soon as possible.\n"
        )

        if not to_email:
            MailService.log_notification(record.id, "overdue", None, body, False, "missing_email")
            return False

        ok, err = MailService.send_email(to_email, "Library: overdue book", body)
        MailService.log_notification(record.id, "overdue", to_email, body, ok, err)
        return ok

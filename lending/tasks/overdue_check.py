# lending/tasks/overdue_check.py
from __future__ import annotations

from datetime import datetime
from flask import current_app

from lending.repositories.borrow_repo import BorrowRepo
from lending.repositories.notification_repo import NotificationRepo
from lending.services.borrow_service import BorrowService
from lending.services.mail_service import MailService
from lending.services.overdue_sweeper import sweep_overdue


def send_overdue_notices(now: datetime | None = None) -> int:
    """
    One mail per overdue record; records that already got a successful
    notice, or that failed OVERDUE_NOTICE_MAX_ATTEMPTS times, are skipped.
    Returns how many mails went out.
    """
    max_attempts = int(current_app.config.get("OVERDUE_NOTICE_MAX_ATTEMPTS", 3))
    sent = 0
    for record in BorrowRepo.list_overdue():
        if NotificationRepo.already_sent(record.id, "overdue"):
            continue
        if NotificationRepo.failed_attempts(record.id, "overdue") >= max_attempts:
            continue
        if MailService.send_overdue_notice(record, BorrowService.current_fine(record, now)):
            sent += 1
    BorrowRepo.commit()
    return sent


def run_overdue_check(now: datetime | None = None) -> dict:
    """Sweep borrowed -> overdue, then notify. Needs an app context."""
    now = now or datetime.utcnow()
    try:
        marked = sweep_overdue(now)
        sent = 0
        if current_app.config.get("OVERDUE_NOTICES_ENABLED", True):
            sent = send_overdue_notices(now)
    except Exception:
        BorrowRepo.rollback()
        raise

    current_app.logger.info(f"[overdue_check] marked_overdue={marked} notices_sent={sent}")
    return {"marked_overdue": marked, "notices_sent": sent}


def run_overdue_check_job(app):
    with app.app_context():
        try:
            run_overdue_check()
        except Exception as ex:
            app.logger.exception(f"[scheduler] overdue_check_job error: {ex}")

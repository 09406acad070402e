from __future__ import annotations

from datetime import datetime

from flask import current_app

from lending.repositories.borrow_repo import BorrowRepo


def sweep_overdue(now: datetime | None = None) -> int:
    """
    Flip every borrowed record whose due date has passed to overdue.

    Safe to call as often as you like: a second run finds nothing to change.
    Fines are not touched here; they stay live until the book is returned.
    """
    now = now or datetime.utcnow()
    try:
        changed = BorrowRepo.mark_overdue(now)
        BorrowRepo.commit()
    except Exception:
        BorrowRepo.rollback()
        raise

    if changed:
        current_app.logger.info(f"[sweeper] marked {changed} record(s) overdue")
    return changed

"""
Overdue fine for a borrow record.

Pure date arithmetic, no database access: the returned amount is days late
times ``rate``, where any started day counts as a full day. Returned records
are charged up to their return date; records still on loan are charged up to
``now`` (a live figure that is only persisted when the book comes back).
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta

from lending.models.borrow_record import BorrowStatus

FINE_PER_DAY = 1
ONE_DAY = timedelta(days=1)


def days_late(due_date: datetime | None, until: datetime | None) -> int:
    if not due_date or not until or until <= due_date:
        return 0
    return math.ceil((until - due_date) / ONE_DAY)


def compute_fine(due_date, return_date, status: str, now: datetime | None = None, rate: int = FINE_PER_DAY) -> int:
    if status == BorrowStatus.RETURNED:
        return days_late(due_date, return_date) * rate
    if status in BorrowStatus.ON_LOAN:
        return days_late(due_date, now or datetime.utcnow()) * rate
    return 0

from datetime import datetime, timedelta

import pytest

from lending.models.borrow_record import BorrowStatus
from lending.services.fine_calculator import compute_fine, days_late

DUE = datetime(2026, 3, 15, 12, 0, 0)


def test_returned_on_due_date_has_no_fine():
    assert compute_fine(DUE, DUE, BorrowStatus.RETURNED) == 0


def test_returned_one_millisecond_late_costs_a_full_day():
    assert compute_fine(DUE, DUE + timedelta(milliseconds=1), BorrowStatus.RETURNED) == 1


def test_returned_early_has_no_fine():
    assert compute_fine(DUE, DUE - timedelta(days=3), BorrowStatus.RETURNED) == 0


@pytest.mark.parametrize("late, expected", [
    (timedelta(days=1), 1),
    (timedelta(days=1, seconds=1), 2),
    (timedelta(days=3), 3),
    (timedelta(days=9, hours=23), 10),
])
def test_partial_days_round_up(late, expected):
    assert compute_fine(DUE, DUE + late, BorrowStatus.RETURNED) == expected


@pytest.mark.parametrize("status", [BorrowStatus.BORROWED, BorrowStatus.OVERDUE])
def test_live_fine_for_books_still_out(status):
    now = DUE + timedelta(days=10)
    assert compute_fine(DUE, None, status, now=now) == 10


def test_live_fine_is_zero_before_due_date():
    assert compute_fine(DUE, None, BorrowStatus.BORROWED, now=DUE - timedelta(hours=1)) == 0


@pytest.mark.parametrize("status", [BorrowStatus.PENDING, BorrowStatus.APPROVED, BorrowStatus.REJECTED])
def test_no_fine_outside_a_loan(status):
    assert compute_fine(DUE, None, status, now=DUE + timedelta(days=30)) == 0


def test_missing_due_date_means_no_fine():
    assert compute_fine(None, DUE, BorrowStatus.RETURNED) == 0
    assert days_late(None, DUE) == 0


def test_rate_multiplies_days():
    assert compute_fine(DUE, DUE + timedelta(days=4), BorrowStatus.RETURNED, rate=5) == 20

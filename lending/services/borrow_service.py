from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from lending.errors import (
    AlreadyReturned,
    BookNotFound,
    BorrowLimitExceeded,
    ConcurrentModification,
    DuplicateActiveBorrow,
    FineAlreadyPaid,
    InvalidStatusForRenewal,
    InvalidStatusForReturn,
    NoCopiesAvailable,
    NoFineDue,
    NotAuthorized,
    RecordNotFound,
    RecordNotPending,
    RecordReturned,
    RenewalLimitReached,
    UserInactive,
    UserNotFound,
)
from lending.models.borrow_record import MAX_RENEWALS, BorrowRecord, BorrowStatus
from lending.repositories.book_repo import BookRepo
from lending.repositories.borrow_repo import BorrowRepo
from lending.repositories.user_repo import UserRepo
from lending.services.fine_calculator import compute_fine
from lending.services.overdue_sweeper import sweep_overdue
from lending.utils.pagination import pagination_meta


@contextmanager
def _atomic():
    """One commit for the record and the book/user counters, or none at all."""
    try:
        yield
        BorrowRepo.commit()
    except StaleDataError as e:
        BorrowRepo.rollback()
        raise ConcurrentModification() from e
    except Exception:
        BorrowRepo.rollback()
        raise


class BorrowService:
    @staticmethod
    def _loan_days() -> int:
        return int(current_app.config.get("LOAN_PERIOD_DAYS", 14))

    @staticmethod
    def _max_active() -> int:
        return int(current_app.config.get("MAX_ACTIVE_BORROWS", 5))

    @staticmethod
    def _fine_rate() -> int:
        return int(current_app.config.get("FINE_PER_DAY", 1))

    @staticmethod
    def _get_record(record_id: int) -> BorrowRecord:
        record = BorrowRepo.get(record_id)
        if not record:
            raise RecordNotFound()
        return record

    @staticmethod
    def current_fine(record: BorrowRecord, now: datetime | None = None) -> int:
        if record.status == BorrowStatus.RETURNED:
            return record.fine_amount
        return compute_fine(record.due_date, record.return_date, record.status,
                            now=now, rate=BorrowService._fine_rate())

    # -----------------------------
    # Transitions
    # -----------------------------
    @staticmethod
    def request_borrow(user_id: int, book_id: int, now: datetime | None = None) -> BorrowRecord:
        """
        Create a pending request. No copy is reserved here; availability is
        only committed when an admin approves.
        """
        now = now or datetime.utcnow()

        user = UserRepo.get_by_id(user_id)
        if not user:
            raise UserNotFound()
        if not user.is_active:
            raise UserInactive("Your account is inactive. Please contact administrator.")

        limit = BorrowService._max_active()
        if BorrowRepo.count_for_user(user_id, BorrowStatus.ACTIVE) >= limit:
            raise BorrowLimitExceeded(f"You have reached the maximum limit of {limit} active borrow requests/books")

        if BorrowRepo.find_active_for_pair(user_id, book_id):
            raise DuplicateActiveBorrow("You already have a pending request or active borrow for this book")

        if not BookRepo.get(book_id):
            raise BookNotFound()

        record = BorrowRecord(
            user_id=user_id,
            book_id=book_id,
            status=BorrowStatus.PENDING,
            request_date=now,
        )
        with _atomic():
            BorrowRepo.add(record)

        current_app.logger.info(f"[borrow] requested record={record.id} user={user_id} book={book_id}")
        return record

    @staticmethod
    def approve_borrow_request(record_id: int, admin_id: int, now: datetime | None = None) -> BorrowRecord:
        now = now or datetime.utcnow()
        record = BorrowService._get_record(record_id)

        if record.status != BorrowStatus.PENDING:
            raise RecordNotPending(f"Cannot approve request with status: {record.status}")

        # re-checked here: time may have passed since the request
        book = BookRepo.get(record.book_id)
        if not book:
            raise BookNotFound()
        if book.available_copies <= 0:
            raise NoCopiesAvailable("No copies available. Cannot approve this request.")

        user = UserRepo.get_by_id(record.user_id)
        if not user:
            raise UserNotFound()
        if not user.is_active:
            raise UserInactive("User account is inactive. Cannot approve request.")

        if BorrowRepo.count_for_user(user.id, BorrowStatus.HELD) >= BorrowService._max_active():
            raise BorrowLimitExceeded("User has reached maximum borrow limit. Cannot approve request.")

        with _atomic():
            # guarded decrement: a concurrent approval may have taken the last copy
            if not BookRepo.reserve_copy(book.id):
                raise NoCopiesAvailable("No copies available. Cannot approve this request.")
            record.start_loan(admin_id, now, BorrowService._loan_days())
            UserRepo.increment_borrowed(user.id)

        current_app.logger.info(
            f"[borrow] approved record={record.id} admin={admin_id} due={record.due_date.isoformat()}"
        )
        return record

    @staticmethod
    def reject_borrow_request(record_id: int, admin_id: int, reason: str | None = None) -> BorrowRecord:
        record = BorrowService._get_record(record_id)

        if record.status != BorrowStatus.PENDING:
            raise RecordNotPending(f"Cannot reject request with status: {record.status}")

        with _atomic():
            record.status = BorrowStatus.REJECTED
            record.approved_by = admin_id
            reason = (reason or "").strip()
            if reason:
                record.rejection_reason = reason

        current_app.logger.info(f"[borrow] rejected record={record.id} admin={admin_id}")
        return record

    @staticmethod
    def return_book(record_id: int, requester_id: int, requester_is_admin: bool = False,
                    now: datetime | None = None) -> BorrowRecord:
        now = now or datetime.utcnow()
        record = BorrowService._get_record(record_id)

        if record.user_id != requester_id and not requester_is_admin:
            raise NotAuthorized("Not authorized to return this book")

        if record.status == BorrowStatus.RETURNED:
            raise AlreadyReturned()

        if record.status not in BorrowStatus.ON_LOAN:
            raise InvalidStatusForReturn(f"Cannot return book with status: {record.status}")

        with _atomic():
            record.return_date = now
            record.status = BorrowStatus.RETURNED
            # fixed from here on; returned is terminal
            record.fine_amount = compute_fine(record.due_date, record.return_date, record.status,
                                              rate=BorrowService._fine_rate())
            BookRepo.release_copy(record.book_id)
            UserRepo.decrement_borrowed(record.user_id)

        current_app.logger.info(f"[borrow] returned record={record.id} fine={record.fine_amount}")
        return record

    @staticmethod
    def renew_book(record_id: int, requester_id: int, now: datetime | None = None) -> BorrowRecord:
        now = now or datetime.utcnow()
        record = BorrowService._get_record(record_id)

        if record.user_id != requester_id:
            raise NotAuthorized("Not authorized to renew this book")

        if record.status == BorrowStatus.RETURNED:
            raise RecordReturned()

        if record.renewal_count >= MAX_RENEWALS:
            raise RenewalLimitReached(f"Maximum renewal limit reached ({MAX_RENEWALS} renewals)")

        if record.status not in BorrowStatus.ON_LOAN:
            raise InvalidStatusForRenewal(f"Cannot renew book with status: {record.status}")

        with _atomic():
            record.extend_due_date(BorrowService._loan_days(), now)

        current_app.logger.info(
            f"[borrow] renewed record={record.id} count={record.renewal_count} due={record.due_date.isoformat()}"
        )
        return record

    @staticmethod
    def pay_fine(record_id: int, requester_id: int) -> BorrowRecord:
        record = BorrowService._get_record(record_id)

        if record.user_id != requester_id:
            raise NotAuthorized()

        if not record.fine_amount:
            raise NoFineDue()

        if record.fine_paid:
            raise FineAlreadyPaid()

        with _atomic():
            record.fine_paid = True

        current_app.logger.info(f"[borrow] fine paid record={record.id} amount={record.fine_amount}")
        return record

    # -----------------------------
    # Reads
    # -----------------------------
    @staticmethod
    def my_borrows(user_id: int, status: str | None = None, page: int = 1, limit: int = 10):
        rows, total = BorrowRepo.paginate(BorrowRepo.query_by_user(user_id, status), page, limit)
        return rows, pagination_meta(page, limit, total)

    @staticmethod
    def current_borrows(user_id: int, now: datetime | None = None):
        sweep_overdue(now)
        return BorrowRepo.list_on_loan_for_user(user_id)

    @staticmethod
    def my_fines(user_id: int):
        rows = BorrowRepo.list_with_fines(user_id)
        total_unpaid = sum(r.fine_amount for r in rows if not r.fine_paid)
        return rows, total_unpaid

    @staticmethod
    def all_borrows(status: str | None = None, page: int = 1, limit: int = 20):
        rows, total = BorrowRepo.paginate(BorrowRepo.query_all(status), page, limit)
        return rows, pagination_meta(page, limit, total)

    @staticmethod
    def overdue_borrows(now: datetime | None = None):
        sweep_overdue(now)
        return BorrowRepo.list_overdue()

    @staticmethod
    def pending_requests(page: int = 1, limit: int = 20):
        rows, total = BorrowRepo.paginate(BorrowRepo.query_pending(), page, limit)
        return rows, pagination_meta(page, limit, total)

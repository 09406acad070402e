from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, update

from lending.models.book import Book
from lending.models.borrow_record import BorrowRecord, BorrowStatus
from lending.extensions import db

class BorrowRepo:
    @staticmethod
    def get(record_id: int):
        return db.session.get(BorrowRecord, record_id)

    @staticmethod
    def add(record: BorrowRecord):
        # caller commits
        db.session.add(record)
        return record

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()

    # -- rule lookups --

    @staticmethod
    def count_for_user(user_id: int, statuses) -> int:
        return BorrowRecord.query.filter(
            BorrowRecord.user_id == user_id,
            BorrowRecord.status.in_(statuses)
        ).count()

    @staticmethod
    def find_active_for_pair(user_id: int, book_id: int):
        return BorrowRecord.query.filter(
            BorrowRecord.user_id == user_id,
            BorrowRecord.book_id == book_id,
            BorrowRecord.status.in_(BorrowStatus.ACTIVE)
        ).first()

    # -- listings --

    @staticmethod
    def paginate(query, page: int, limit: int):
        total = query.order_by(None).count()
        rows = query.offset((page - 1) * limit).limit(limit).all()
        return rows, total

    @staticmethod
    def query_by_user(user_id: int, status: str | None = None):
        q = BorrowRecord.query.filter(BorrowRecord.user_id == user_id)
        if status:
            q = q.filter(BorrowRecord.status == status)
        return q.order_by(BorrowRecord.request_date.desc(), BorrowRecord.id.desc())

    @staticmethod
    def query_all(status: str | None = None):
        q = BorrowRecord.query
        if status:
            q = q.filter(BorrowRecord.status == status)
        return q.order_by(BorrowRecord.request_date.desc(), BorrowRecord.id.desc())

    @staticmethod
    def query_pending():
        return BorrowRecord.query.filter(
            BorrowRecord.status == BorrowStatus.PENDING
        ).order_by(BorrowRecord.request_date.desc(), BorrowRecord.id.desc())

    @staticmethod
    def list_on_loan_for_user(user_id: int):
        return BorrowRecord.query.filter(
            BorrowRecord.user_id == user_id,
            BorrowRecord.status.in_(BorrowStatus.ON_LOAN)
        ).order_by(BorrowRecord.due_date.asc()).all()

    @staticmethod
    def list_overdue():
        return BorrowRecord.query.filter(
            BorrowRecord.status == BorrowStatus.OVERDUE
        ).order_by(BorrowRecord.due_date.asc()).all()

    @staticmethod
    def list_with_fines(user_id: int):
        return BorrowRecord.query.filter(
            BorrowRecord.user_id == user_id,
            BorrowRecord.fine_amount > 0
        ).order_by(BorrowRecord.return_date.desc()).all()

    @staticmethod
    def list_recent(limit: int = 5):
        return BorrowRecord.query.filter(
            BorrowRecord.borrow_date.isnot(None)
        ).order_by(BorrowRecord.borrow_date.desc()).limit(limit).all()

    # -- aggregates --

    @staticmethod
    def count(status: str | None = None) -> int:
        q = BorrowRecord.query
        if status:
            q = q.filter(BorrowRecord.status == status)
        return q.count()

    @staticmethod
    def sum_fines(user_id: int | None = None, unpaid_only: bool = False) -> int:
        q = db.session.query(func.coalesce(func.sum(BorrowRecord.fine_amount), 0)).filter(
            BorrowRecord.fine_amount > 0
        )
        if user_id is not None:
            q = q.filter(BorrowRecord.user_id == user_id)
        if unpaid_only:
            q = q.filter(BorrowRecord.fine_paid.is_(False))
        return int(q.scalar() or 0)

    @staticmethod
    def most_borrowed_books(limit: int = 5):
        """(book_id, title, author, count) for the titles with the most borrow records."""
        cnt = func.count(BorrowRecord.id).label("count")
        return (
            db.session.query(Book.id, Book.title, Book.author, cnt)
            .join(BorrowRecord, BorrowRecord.book_id == Book.id)
            .group_by(Book.id, Book.title, Book.author)
            .order_by(cnt.desc(), Book.id.asc())
            .limit(limit)
            .all()
        )

    # -- bulk transition --

    @staticmethod
    def mark_overdue(now: datetime) -> int:
        """
        borrowed + due_date < now  ->  overdue, as one UPDATE.
        The version column is left alone: a record that is mid-transition
        elsewhere must not fail its own commit because of the sweep.
        """
        result = db.session.execute(
            update(BorrowRecord)
            .where(
                BorrowRecord.status == BorrowStatus.BORROWED,
                BorrowRecord.due_date < now
            )
            .values(status=BorrowStatus.OVERDUE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

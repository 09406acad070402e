from __future__ import annotations

from datetime import datetime

from lending.services.borrow_service import BorrowService


def _iso(value):
    return value.isoformat() if value else None


def book_json(b) -> dict:
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "genre": b.genre,
        "total_copies": b.total_copies,
        "available_copies": b.available_copies,
    }


def user_json(u) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "role": u.role,
        "is_active": bool(u.is_active),
        "currently_borrowed": u.currently_borrowed,
        "created_at": _iso(u.created_at),
    }


def borrow_json(r, now: datetime | None = None, with_fine: bool = True) -> dict:
    data = {
        "id": r.id,
        "user_id": r.user_id,
        "username": r.user.username if r.user else None,
        "book_id": r.book_id,
        "book_title": r.book.title if r.book else None,
        "book_author": r.book.author if r.book else None,
        "status": r.status,
        "request_date": _iso(r.request_date),
        "borrow_date": _iso(r.borrow_date),
        "due_date": _iso(r.due_date),
        "return_date": _iso(r.return_date),
        "approved_by": r.approved_by,
        "rejection_reason": r.rejection_reason,
        "fine_amount": r.fine_amount,
        "fine_paid": bool(r.fine_paid),
        "renewal_count": r.renewal_count,
    }
    # live figure for loans still out
    if with_fine and r.is_on_loan:
        data["current_fine"] = BorrowService.current_fine(r, now)
    return data

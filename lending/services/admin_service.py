from __future__ import annotations

from datetime import datetime

from flask import current_app

from lending.errors import CannotModifyAdmin, UserNotFound
from lending.models.borrow_record import BorrowStatus
from lending.repositories.book_repo import BookRepo
from lending.repositories.borrow_repo import BorrowRepo
from lending.repositories.user_repo import UserRepo
from lending.services.overdue_sweeper import sweep_overdue
from lending.utils.pagination import pagination_meta


class AdminService:
    @staticmethod
    def dashboard(now: datetime | None = None) -> dict:
        # counts must reflect overdue loans that nobody has looked at yet
        sweep_overdue(now)

        stats = {
            "total_books": BookRepo.count(),
            "total_users": UserRepo.count_patrons(),
            "total_borrows": BorrowRepo.count(),
            "active_borrows": BorrowRepo.count(BorrowStatus.BORROWED),
            "overdue_borrows": BorrowRepo.count(BorrowStatus.OVERDUE),
            "pending_requests": BorrowRepo.count(BorrowStatus.PENDING),
            "total_unpaid_fines": BorrowRepo.sum_fines(unpaid_only=True),
        }
        most_borrowed = [
            {"book_id": book_id, "title": title, "author": author, "count": int(count)}
            for book_id, title, author, count in BorrowRepo.most_borrowed_books(5)
        ]
        books_by_genre = [
            {"genre": genre, "count": int(count)}
            for genre, count in BookRepo.count_by_genre()
        ]
        return {
            "stats": stats,
            "books_by_genre": books_by_genre,
            "recent_borrows": BorrowRepo.list_recent(5),
            "most_borrowed_books": most_borrowed,
        }

    @staticmethod
    def list_users(search: str | None = None, page: int = 1, limit: int = 20):
        rows, total = UserRepo.list_patrons(search, page, limit)
        return rows, pagination_meta(page, limit, total)

    @staticmethod
    def user_details(user_id: int) -> dict:
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise UserNotFound()

        history, _ = BorrowRepo.paginate(BorrowRepo.query_by_user(user_id), 1, 10)
        return {
            "user": user,
            "borrow_history": history,
            "total_fines": BorrowRepo.sum_fines(user_id=user_id),
            "unpaid_fines": BorrowRepo.sum_fines(user_id=user_id, unpaid_only=True),
        }

    @staticmethod
    def toggle_user_status(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise UserNotFound()
        if user.is_admin:
            raise CannotModifyAdmin()

        user.is_active = not user.is_active
        UserRepo.commit()

        current_app.logger.info(f"[admin] user={user.id} is_active={user.is_active}")
        return user

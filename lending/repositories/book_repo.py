from sqlalchemy import func, update

from lending.models.book import Book
from lending.extensions import db

class BookRepo:
    @staticmethod
    def list_all():
        return Book.query.order_by(Book.id.desc()).all()

    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def create(book: Book):
        db.session.add(book)
        db.session.commit()
        return book

    @staticmethod
    def count() -> int:
        return Book.query.count()

    @staticmethod
    def count_by_genre():
        """(genre, count) pairs, most common genre first."""
        cnt = func.count(Book.id)
        return (
            db.session.query(Book.genre, cnt)
            .group_by(Book.genre)
            .order_by(cnt.desc(), Book.genre.asc())
            .all()
        )

    @staticmethod
    def _expire(book_id: int):
        book = db.session.identity_map.get(db.session.identity_key(Book, book_id))
        if book is not None:
            db.session.expire(book)

    @staticmethod
    def reserve_copy(book_id: int) -> bool:
        """
        available_copies -= 1, only if a copy is left.
        Returns False when the guard did not match (no copies / no book).
        Does not commit; runs inside the caller's transaction.
        """
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies > 0)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session=False)
        )
        BookRepo._expire(book_id)
        return result.rowcount == 1

    @staticmethod
    def release_copy(book_id: int) -> bool:
        # min(total, available + 1)
        result = db.session.execute(
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session=False)
        )
        BookRepo._expire(book_id)
        return result.rowcount == 1

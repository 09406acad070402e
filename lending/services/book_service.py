from lending.models.book import Book
from lending.repositories.book_repo import BookRepo
from lending.errors import BookNotFound

class BookService:
    @staticmethod
    def list_books():
        return BookRepo.list_all()

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise BookNotFound()
        return book

    @staticmethod
    def create_book(data: dict):
        total = int(data.get("total_copies", 1))
        if total < 1:
            raise ValueError("total_copies must be at least 1")

        available = int(data.get("available_copies", total))
        book = Book(
            title=data["title"],
            author=data["author"],
            isbn=data.get("isbn"),
            genre=data.get("genre"),
            total_copies=total,
            available_copies=min(max(available, 0), total),
        )
        return BookRepo.create(book)

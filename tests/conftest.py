from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from lending import create_app
from lending.config import TestConfig
from lending.extensions import db
from lending.models import Book, BorrowRecord, BorrowStatus, User
from lending.services.auth_service import AuthService

T0 = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(username=None, role="user", is_active=True):
        counter["n"] += 1
        username = username or f"reader{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=generate_password_hash("secret"),
            role=role,
            is_active=is_active,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_book(app):
    counter = {"n": 0}

    def _make(copies=1, available=None, title=None, genre=None):
        counter["n"] += 1
        book = Book(
            title=title or f"Book {counter['n']}",
            author="Some Author",
            genre=genre,
            isbn=f"978000000{counter['n']:04d}",
            total_copies=copies,
            available_copies=copies if available is None else available,
        )
        db.session.add(book)
        db.session.commit()
        return book

    return _make


@pytest.fixture
def make_record(app):
    """Insert a record in any state directly, bypassing the lifecycle rules."""

    def _make(user, book, status=BorrowStatus.PENDING, **fields):
        record = BorrowRecord(user_id=user.id, book_id=book.id, status=status,
                              request_date=fields.pop("request_date", T0), **fields)
        db.session.add(record)
        db.session.commit()
        return record

    return _make


@pytest.fixture
def patron(make_user):
    return make_user("alice")


@pytest.fixture
def admin(make_user):
    return make_user("librarian", role="admin")


@pytest.fixture
def auth_header(app):
    def _header(user):
        return {"Authorization": f"Bearer {AuthService.issue_token(user)}"}

    return _header

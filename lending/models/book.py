from datetime import datetime
from lending.extensions import db

class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("available_copies >= 0", name="ck_books_available_non_negative"),
        db.CheckConstraint("available_copies <= total_copies", name="ck_books_available_le_total"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)
    genre = db.Column(db.String(80), nullable=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

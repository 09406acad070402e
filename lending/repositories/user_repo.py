from __future__ import annotations

from sqlalchemy import update

from lending.models.user import User
from lending.extensions import db

class UserRepo:
    @staticmethod
    def get_by_username(username: str):
        return User.query.filter_by(username=username).first()

    @staticmethod
    def get_by_email(email: str):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def create(user: User):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def list_patrons(search: str | None = None, page: int = 1, limit: int = 20):
        q = User.query.filter(User.role == "user")
        if search:
            like = f"%{search}%"
            q = q.filter((User.username.ilike(like)) | (User.email.ilike(like)))
        total = q.count()
        rows = q.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return rows, total

    @staticmethod
    def count_patrons() -> int:
        return User.query.filter(User.role == "user").count()

    @staticmethod
    def _expire(user_id: int):
        user = db.session.identity_map.get(db.session.identity_key(User, user_id))
        if user is not None:
            db.session.expire(user)

    @staticmethod
    def increment_borrowed(user_id: int):
        db.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(currently_borrowed=User.currently_borrowed + 1)
            .execution_options(synchronize_session=False)
        )
        UserRepo._expire(user_id)

    @staticmethod
    def decrement_borrowed(user_id: int):
        # never below zero
        db.session.execute(
            update(User)
            .where(User.id == user_id, User.currently_borrowed > 0)
            .values(currently_borrowed=User.currently_borrowed - 1)
            .execution_options(synchronize_session=False)
        )
        UserRepo._expire(user_id)

    @staticmethod
    def commit():
        db.session.commit()

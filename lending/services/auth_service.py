from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from lending.models.user import User
from lending.repositories.user_repo import UserRepo

class AuthService:
    @staticmethod
    def register(username: str, email: str, password: str, role: str = "user"):
        if UserRepo.get_by_username(username) or UserRepo.get_by_email(email):
            raise ValueError("Username or email already registered")

        user = User(
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            is_active=True,
        )
        UserRepo.create(user)
        return user

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "username": user.username}
        )

    @staticmethod
    def login(username: str, password: str):
        user = UserRepo.get_by_username(username)
        if not user or not check_password_hash(user.password_hash, password):
            raise ValueError("Invalid username or password")
        if not user.is_active:
            raise ValueError("Account is inactive. Please contact administrator.")

        return AuthService.issue_token(user), user

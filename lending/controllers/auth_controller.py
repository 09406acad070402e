from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from lending.services.auth_service import AuthService
from lending.repositories.user_repo import UserRepo
from lending.utils.responses import json_error
from lending.utils.serializers import user_json

auth_bp = Blueprint("auth", __name__)

@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}

    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    password = (data.get("password") or "").strip()

    if not username or not email or not password:
        return json_error("username/email/password are required", 400)

    try:
        user = AuthService.register(
            username=username,
            email=email,
            password=password,
            role="user"  # never taken from the request
        )
        return jsonify({"success": True, "data": user_json(user)}), 201
    except ValueError as e:
        return json_error(str(e), 400)


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        token, user = AuthService.login(
            (data.get("username") or "").strip(),
            (data.get("password") or "").strip()
        )
        return jsonify({"success": True, "access_token": token, "user": user_json(user)})
    except ValueError as e:
        return json_error(str(e), 401)


@auth_bp.get("/me")
@jwt_required()
def me():
    user = UserRepo.get_by_id(int(get_jwt_identity()))
    if not user:
        return json_error("User not found", 404)
    return jsonify({"success": True, "user": user_json(user)})

from flask import Blueprint, request, jsonify

from lending.errors import LendingError
from lending.services.admin_service import AdminService
from lending.tasks.overdue_check import run_overdue_check
from lending.utils.decorators import admin_required
from lending.utils.pagination import page_args
from lending.utils.responses import lending_error
from lending.utils.serializers import borrow_json, user_json

admin_bp = Blueprint("admin", __name__)


@admin_bp.get("/dashboard")
@admin_required
def dashboard():
    data = AdminService.dashboard()
    return jsonify({
        "success": True,
        "data": {
            "stats": data["stats"],
            "books_by_genre": data["books_by_genre"],
            "recent_borrows": [borrow_json(r, with_fine=False) for r in data["recent_borrows"]],
            "most_borrowed_books": data["most_borrowed_books"],
        }
    })


@admin_bp.get("/users")
@admin_required
def list_users():
    page, limit = page_args()
    search = (request.args.get("search") or "").strip() or None
    rows, pagination = AdminService.list_users(search, page, limit)
    return jsonify({"success": True, "data": [user_json(u) for u in rows], "pagination": pagination})


@admin_bp.get("/users/<int:user_id>")
@admin_required
def user_details(user_id: int):
    try:
        data = AdminService.user_details(user_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({
        "success": True,
        "data": {
            "user": user_json(data["user"]),
            "borrow_history": [borrow_json(r) for r in data["borrow_history"]],
            "total_fines": data["total_fines"],
            "unpaid_fines": data["unpaid_fines"],
        }
    })


@admin_bp.put("/users/<int:user_id>/toggle-status")
@admin_required
def toggle_user_status(user_id: int):
    try:
        user = AdminService.toggle_user_status(user_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({
        "success": True,
        "data": user_json(user),
        "message": f"User {'activated' if user.is_active else 'deactivated'} successfully"
    })


@admin_bp.post("/run-overdue-check")
@admin_required
def run_overdue_check_now():
    result = run_overdue_check()
    return jsonify({"success": True, "data": result, "message": "Overdue check finished"})

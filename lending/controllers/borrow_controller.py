from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lending.errors import LendingError
from lending.models.borrow_record import BorrowStatus
from lending.services.borrow_service import BorrowService
from lending.utils.decorators import role_required, current_identity
from lending.utils.pagination import page_args
from lending.utils.responses import json_error, lending_error
from lending.utils.serializers import borrow_json

borrow_bp = Blueprint("borrows", __name__)


def _status_arg():
    status = request.args.get("status")
    if status and status not in BorrowStatus.ALL:
        return None, json_error(f"Unknown status: {status}", 400)
    return status, None


# -----------------------------
# Patron
# -----------------------------
@borrow_bp.post("/")
@jwt_required()
def request_borrow():
    data = request.get_json(silent=True) or {}
    try:
        book_id = int(data["book_id"])
    except (KeyError, TypeError, ValueError):
        return json_error("book_id is required", 400)

    user_id, _ = current_identity()
    try:
        record = BorrowService.request_borrow(user_id, book_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({
        "success": True,
        "data": borrow_json(record),
        "message": "Borrow request submitted successfully. Waiting for admin approval."
    }), 201


@borrow_bp.get("/my-borrows")
@jwt_required()
def my_borrows():
    status, err = _status_arg()
    if err:
        return err
    page, limit = page_args(default_limit=10)
    user_id, _ = current_identity()

    rows, pagination = BorrowService.my_borrows(user_id, status, page, limit)
    return jsonify({"success": True, "data": [borrow_json(r) for r in rows], "pagination": pagination})


@borrow_bp.get("/current")
@jwt_required()
def current_borrows():
    user_id, _ = current_identity()
    rows = BorrowService.current_borrows(user_id)
    return jsonify({"success": True, "data": [borrow_json(r) for r in rows]})


@borrow_bp.get("/my-fines")
@jwt_required()
def my_fines():
    user_id, _ = current_identity()
    rows, total_unpaid = BorrowService.my_fines(user_id)
    return jsonify({
        "success": True,
        "data": {
            "fines": [borrow_json(r, with_fine=False) for r in rows],
            "total_unpaid_fines": total_unpaid
        }
    })


@borrow_bp.put("/<int:record_id>/return")
@jwt_required()
def return_book(record_id: int):
    user_id, is_admin = current_identity()
    try:
        record = BorrowService.return_book(record_id, user_id, requester_is_admin=is_admin)
    except LendingError as e:
        return lending_error(e)

    fine = record.fine_amount
    return jsonify({
        "success": True,
        "data": borrow_json(record),
        "message": f"Book returned with a fine of {fine}" if fine > 0 else "Book returned successfully"
    })


@borrow_bp.put("/<int:record_id>/renew")
@jwt_required()
def renew_book(record_id: int):
    user_id, _ = current_identity()
    try:
        record = BorrowService.renew_book(record_id, user_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({
        "success": True,
        "data": borrow_json(record),
        "message": f"Book renewed. New due date: {record.due_date:%Y-%m-%d}"
    })


@borrow_bp.put("/<int:record_id>/pay-fine")
@jwt_required()
def pay_fine(record_id: int):
    user_id, _ = current_identity()
    try:
        record = BorrowService.pay_fine(record_id, user_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({"success": True, "message": f"Fine of {record.fine_amount} paid successfully"})


# -----------------------------
# Admin
# -----------------------------
@borrow_bp.get("/")
@role_required("admin")
def all_borrows():
    status, err = _status_arg()
    if err:
        return err
    page, limit = page_args()

    rows, pagination = BorrowService.all_borrows(status, page, limit)
    return jsonify({"success": True, "data": [borrow_json(r) for r in rows], "pagination": pagination})


@borrow_bp.get("/overdue")
@role_required("admin")
def overdue_borrows():
    rows = BorrowService.overdue_borrows()
    return jsonify({"success": True, "data": [borrow_json(r) for r in rows]})


@borrow_bp.get("/pending")
@role_required("admin")
def pending_requests():
    page, limit = page_args()
    rows, pagination = BorrowService.pending_requests(page, limit)
    return jsonify({"success": True, "data": [borrow_json(r) for r in rows], "pagination": pagination})


@borrow_bp.put("/<int:record_id>/approve")
@role_required("admin")
def approve_request(record_id: int):
    admin_id, _ = current_identity()
    try:
        record = BorrowService.approve_borrow_request(record_id, admin_id)
    except LendingError as e:
        return lending_error(e)

    return jsonify({"success": True, "data": borrow_json(record), "message": "Borrow request approved successfully"})


@borrow_bp.put("/<int:record_id>/reject")
@role_required("admin")
def reject_request(record_id: int):
    data = request.get_json(silent=True) or {}
    admin_id, _ = current_identity()
    try:
        record = BorrowService.reject_borrow_request(record_id, admin_id, data.get("reason"))
    except LendingError as e:
        return lending_error(e)

    return jsonify({"success": True, "data": borrow_json(record), "message": "Borrow request rejected successfully"})

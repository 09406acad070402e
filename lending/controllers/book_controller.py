# lending/controllers/book_controller.py

from flask import Blueprint, request, jsonify
from lending.errors import LendingError
from lending.services.book_service import BookService
from lending.utils.decorators import role_required
from lending.utils.responses import json_error, lending_error
from lending.utils.serializers import book_json

book_bp = Blueprint("books", __name__)


@book_bp.get("/")
def list_books():
    books = BookService.list_books()
    return jsonify({"success": True, "data": [book_json(b) for b in books]})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    try:
        b = BookService.get_book(book_id)
    except LendingError as e:
        return lending_error(e)
    return jsonify({"success": True, "data": book_json(b)})


@book_bp.post("/")
@role_required("admin")
def create_book():
    data = request.get_json(silent=True) or {}
    try:
        b = BookService.create_book(data)
        return jsonify({"success": True, "data": book_json(b)}), 201
    except KeyError:
        return json_error("title and author are required", 400)
    except ValueError as e:
        return json_error(str(e), 400)

# lending/controllers/book_controller.py

from flask import Blueprint, current_app, jsonify, request

from lending.errors import LendingError
from lending.extensions import db
from lending.repositories.book_repo import BookRepo
from lending.utils.projections import book_to_dict

book_bp = Blueprint("books", __name__)


@book_bp.get("/")
def list_books():
    books = BookRepo(db.session).list_all(library_id=request.args.get("library_id", type=int))
    return jsonify({"success": True, "data": [book_to_dict(b) for b in books]})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    try:
        b = current_app.extensions["book_inventory"].get(book_id)
        return jsonify({"success": True, "data": book_to_dict(b)})
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code

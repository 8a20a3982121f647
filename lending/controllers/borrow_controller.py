from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from lending.constants import STAFF_ROLES, BorrowingStatus, Role
from lending.errors import LendingError
from lending.utils.decorators import current_role, current_user_id, role_required
from lending.utils.projections import borrowing_to_dict

borrow_bp = Blueprint("borrowings", __name__)

STATUS_FILTERS = {s.value for s in BorrowingStatus}


def _service():
    return current_app.extensions["borrowing_service"]


def _view(b):
    service = _service()
    return borrowing_to_dict(b, service.clock(), service.settings.fine_per_day)


def _status_filter():
    status = request.args.get("status") or None
    if status and status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status}")
    return status


@borrow_bp.post("/")
@role_required(Role.USER.value)
def request_borrow():
    data = request.get_json(silent=True) or {}
    try:
        book_id = int(data["book_id"])
        library_id = int(data["library_id"]) if data.get("library_id") is not None else None
    except (KeyError, TypeError, ValueError):
        return jsonify({"success": False, "message": "book_id is required"}), 400

    try:
        b = _service().request_borrow(current_user_id(), book_id, library_id, data.get("notes"))
        return jsonify({
            "success": True,
            "data": _view(b),
            "message": "Borrowing request created successfully",
        }), 201
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code


@borrow_bp.get("/my")
@jwt_required()
def my_borrowings():
    try:
        rows, meta = _service().list_my_borrowings(
            current_user_id(),
            status=_status_filter(),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    return jsonify({"success": True, "data": [_view(x) for x in rows], "meta": meta})


@borrow_bp.get("/")
@role_required(*STAFF_ROLES)
def all_borrowings():
    try:
        rows, meta = _service().list_borrowings(
            status=_status_filter(),
            library_id=request.args.get("library_id", type=int),
            user_id=request.args.get("user_id", type=int),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    return jsonify({"success": True, "data": [_view(x) for x in rows], "meta": meta})


@borrow_bp.get("/<int:borrowing_id>")
@jwt_required()
def get_borrowing(borrowing_id: int):
    try:
        b = _service().get_borrowing(borrowing_id)
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code

    # plain users only see their own records
    if current_role() not in STAFF_ROLES and b.user_id != current_user_id():
        return jsonify({"success": False, "code": "FORBIDDEN", "message": "Forbidden"}), 403
    return jsonify({"success": True, "data": _view(b)})


@borrow_bp.put("/<int:borrowing_id>/confirm")
@role_required(*STAFF_ROLES)
def confirm_pickup(borrowing_id: int):
    try:
        b = _service().confirm_pickup(borrowing_id)
        return jsonify({"success": True, "data": _view(b), "message": "Book pickup confirmed"})
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code


@borrow_bp.put("/<int:borrowing_id>/return")
@role_required(*STAFF_ROLES)
def return_book(borrowing_id: int):
    try:
        b = _service().return_book(borrowing_id)
        return jsonify({"success": True, "data": _view(b), "message": "Book returned successfully"})
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code

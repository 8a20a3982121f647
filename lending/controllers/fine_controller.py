# lending/controllers/fine_controller.py

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from lending.constants import STAFF_ROLES
from lending.extensions import db
from lending.repositories.borrowing_repo import BorrowingRepo
from lending.utils.decorators import current_user_id, role_required

fine_bp = Blueprint("fines", __name__)


def _fine_to_dict(b) -> dict:
    return {
        "borrowing_id": b.id,
        "user_id": b.user_id,
        "book_id": b.book_id,
        "due_date": b.due_date.isoformat() if b.due_date else None,
        "returned_at": b.actual_return_date.isoformat() if b.actual_return_date else None,
        "amount": float(b.fine_amount),
    }


@fine_bp.get("/my")
@jwt_required()
def my_fines():
    rows = BorrowingRepo(db.session).list_fined(user_id=current_user_id())
    return jsonify({
        "success": True,
        "data": [_fine_to_dict(b) for b in rows],
        "total": float(sum(b.fine_amount for b in rows)),
    })


@fine_bp.get("/")
@role_required(*STAFF_ROLES)
def all_fines():
    rows = BorrowingRepo(db.session).list_fined(user_id=request.args.get("user_id", type=int))
    return jsonify({"success": True, "data": [_fine_to_dict(b) for b in rows]})

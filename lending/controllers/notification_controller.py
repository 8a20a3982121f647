from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from lending.constants import Role
from lending.errors import LendingError
from lending.tasks.late_check import run_late_check_job
from lending.utils.decorators import current_user_id, role_required
from lending.utils.projections import notification_to_dict

notif_bp = Blueprint("notifications", __name__)


def _service():
    return current_app.extensions["notification_service"]


@notif_bp.get("/my")
@jwt_required()
def my_notifications():
    rows, unread, meta = _service().list_for_user(
        current_user_id(),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
        unread_only=request.args.get("unread_only") in ("1", "true"),
    )
    return jsonify({
        "success": True,
        "data": [notification_to_dict(n) for n in rows],
        "unread_count": unread,
        "meta": meta,
    })


@notif_bp.post("/<int:notification_id>/read")
@jwt_required()
def mark_read(notification_id: int):
    try:
        _service().mark_read(notification_id, current_user_id())
        return jsonify({"success": True})
    except LendingError as e:
        return jsonify(e.to_dict()), e.status_code


@notif_bp.post("/read-all")
@jwt_required()
def mark_all_read():
    count = _service().mark_all_read(current_user_id())
    return jsonify({"success": True, "updated": count})


@notif_bp.post("/run-late-check")
@role_required(Role.ADMIN.value)
def run_late_check():
    summary = run_late_check_job(current_app._get_current_object())
    return jsonify({"success": True, "message": "Late check finished", "data": summary})

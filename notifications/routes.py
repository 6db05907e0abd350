from flask import abort, jsonify
from flask_login import login_required, current_user

from . import notifications_bp
from services.notification_service import (
    delete_notification,
    mark_all_read,
    mark_read,
    unread_count,
    user_notifications,
)


@notifications_bp.route("/", methods=["GET"])
@login_required
def notifications_list():
    rows = user_notifications(current_user.id)
    return jsonify({
        "items": [n.to_dict() for n in rows],
        "unread": unread_count(current_user.id),
    })


@notifications_bp.route("/<int:notification_id>/read", methods=["PATCH"])
@login_required
def notification_read(notification_id):
    # Only the owner can touch a notification; others get 404
    if not mark_read(notification_id, current_user.id):
        abort(404)
    return jsonify({"ok": True})


@notifications_bp.route("/mark-all-read", methods=["PATCH"])
@login_required
def notifications_mark_all_read():
    count = mark_all_read(current_user.id)
    return jsonify({"ok": True, "updated": count})


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@login_required
def notification_delete(notification_id):
    if not delete_notification(notification_id, current_user.id):
        abort(404)
    return "", 204

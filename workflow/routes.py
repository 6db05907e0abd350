# workflow/routes.py

import logging

from flask import abort, jsonify, request
from flask_login import login_required, current_user

from . import workflow_bp
from extensions import db
from models import ServiceRequest
from permissions import can_view_request
from filters.request_filters import pending_approvals_for, requests_of_user
from services.timeline_service import request_timeline
from workflow.engine import (
    apply_action,
    cancel_request,
    complete_request,
    create_request,
    resubmit_request,
)
from workflow.errors import ValidationError

logger = logging.getLogger(__name__)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _get_request_or_404(request_id):
    req = db.session.get(ServiceRequest, request_id)
    if req is None:
        abort(404)
    return req


def _as_bool(value, default=True):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# =========================
# Requests
# =========================
@workflow_bp.route("/requests", methods=["POST"])
@login_required
def new_request():
    data = _json_body()
    submit = _as_bool(data.pop("submit", None), default=True)

    req = create_request(current_user, data, submit=submit)
    return jsonify(req.to_dict()), 201


@workflow_bp.route("/requests", methods=["GET"])
@login_required
def my_requests():
    rows = requests_of_user(current_user.id, request.args.to_dict())
    return jsonify([r.to_dict() for r in rows])


@workflow_bp.route("/requests/<int:request_id>", methods=["GET"])
@login_required
def view_request(request_id):
    req = _get_request_or_404(request_id)
    if not can_view_request(current_user, req):
        abort(403)
    return jsonify(req.to_dict())


@workflow_bp.route("/requests/<int:request_id>/action", methods=["POST"])
@login_required
def request_action(request_id):
    req = _get_request_or_404(request_id)
    data = _json_body()

    req = apply_action(
        req,
        current_user,
        data.get("action"),
        comment=data.get("comment"),
        expected_stage=data.get("workflowStage"),
    )
    return jsonify(req.to_dict())


@workflow_bp.route("/requests/<int:request_id>/resubmit", methods=["POST"])
@login_required
def resubmit(request_id):
    req = _get_request_or_404(request_id)
    req = resubmit_request(req, current_user, changes=_json_body())
    return jsonify(req.to_dict())


@workflow_bp.route("/requests/<int:request_id>/cancel", methods=["POST"])
@login_required
def cancel(request_id):
    req = _get_request_or_404(request_id)
    req = cancel_request(req, current_user, reason=_json_body().get("reason"))
    return jsonify(req.to_dict())


@workflow_bp.route("/requests/<int:request_id>/complete", methods=["POST"])
@login_required
def complete(request_id):
    req = _get_request_or_404(request_id)
    req = complete_request(req, current_user, comment=_json_body().get("comment"))
    return jsonify(req.to_dict())


@workflow_bp.route("/requests/<int:request_id>/timeline", methods=["GET"])
@login_required
def timeline(request_id):
    req = _get_request_or_404(request_id)
    if not can_view_request(current_user, req):
        abort(403)
    return jsonify([t.to_dict() for t in request_timeline(req.id)])


# =========================
# Approvals
# =========================
@workflow_bp.route("/approvals/pending", methods=["GET"])
@login_required
def pending_approvals():
    rows = pending_approvals_for(current_user.id, request.args.to_dict())
    return jsonify([r.to_dict() for r in rows])

import logging

from flask import jsonify, request
from flask_login import login_user, logout_user, login_required, current_user

from . import auth_bp
from extensions import db
from models import User, utcnow
from services.audit_service import audit

logger = logging.getLogger(__name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form.to_dict() or {}
    if not isinstance(data, dict):
        data = {}
    email = data.get("email")
    email = email.strip().lower() if isinstance(email, str) else ""
    password = data.get("password")
    if not isinstance(password, str):
        password = ""

    logger.info("Login attempt for email=%s", email)

    user = User.query.filter_by(email=email).first() if email else None

    if not user or not user.check_password(password):
        logger.warning("Login failed for email=%s", email)
        return jsonify({"error": "invalid_credentials", "message": "Invalid email or password."}), 401

    if not user.is_active:
        logger.warning("Login refused: user_id=%s is inactive", user.id)
        return jsonify({"error": "inactive_account", "message": "This account is inactive."}), 403

    user.last_login = utcnow()
    audit("login", user_id=user.id, resource_type="user", resource_id=user.id)
    db.session.commit()

    login_user(user)
    logger.info("Login success | user_id=%s", user.id)
    return jsonify(user.to_dict())


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logger.info("Logout | user_id=%s", current_user.id)
    logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(current_user.to_dict())

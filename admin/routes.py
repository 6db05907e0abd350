import logging

from flask import Blueprint, abort, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Department, Faculty, User, WorkflowConfig
from permissions import roles_required
from constants import (
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_SYS_ADMIN,
    USER_ROLES,
    USER_STATUS_ACTIVE,
    USER_STATUS_INACTIVE,
)
from services.audit_service import audit, search_audit_logs
from workflow.config_store import list_workflow_configs, save_workflow_config
from workflow.errors import ValidationError

logger = logging.getLogger(__name__)

# =========================
# Blueprint
# =========================
admin_bp = Blueprint(
    "admin",
    __name__,
    url_prefix="/api/admin"
)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _get_or_404(model, pk):
    obj = db.session.get(model, pk)
    if obj is None:
        abort(404)
    return obj


def _text_field(data, key):
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be text.", fields={key: "must be a string"})
    return value.strip()


def _int_or_none(value, field):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number.", fields={field: value})


def _flush_or_conflict(what):
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(f"{what} already exists (name, code, email or staff number must be unique).")


def _commit_or_conflict(what):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(f"{what} already exists (name, code, email or staff number must be unique).")


# =========================
# Workflow configuration
# =========================
@admin_bp.route("/workflows", methods=["GET"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def workflow_list():
    return jsonify([c.to_dict() for c in list_workflow_configs()])


@admin_bp.route("/workflows/<request_type>", methods=["PUT"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def workflow_save(request_type):
    data = _json_body()
    department_id = _int_or_none(data.get("departmentId"), "departmentId")
    if department_id is not None:
        _get_or_404(Department, department_id)

    cfg = save_workflow_config(request_type, data.get("stages"), department_id=department_id, auto_commit=False)
    db.session.flush()
    audit("update_workflow", user_id=current_user.id, resource_type="workflow_config", resource_id=cfg.id,
          details={"requestType": cfg.request_type, "departmentId": department_id, "stages": cfg.stages})
    db.session.commit()
    return jsonify(cfg.to_dict())


@admin_bp.route("/workflows/<int:config_id>", methods=["DELETE"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def workflow_delete(config_id):
    cfg = _get_or_404(WorkflowConfig, config_id)

    # Routing fails closed without a default; only overrides may be removed
    if cfg.department_id is None:
        raise ValidationError("The default workflow of a request type cannot be deleted.")

    audit("delete_workflow", user_id=current_user.id, resource_type="workflow_config", resource_id=cfg.id,
          details={"requestType": cfg.request_type, "departmentId": cfg.department_id})
    db.session.delete(cfg)
    db.session.commit()
    return "", 204


# =========================
# Faculties
# =========================
@admin_bp.route("/faculties", methods=["GET"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def faculty_list():
    rows = Faculty.query.order_by(Faculty.name.asc()).all()
    return jsonify([f.to_dict() for f in rows])


@admin_bp.route("/faculties", methods=["POST"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def faculty_create():
    data = _json_body()
    name = _text_field(data, "name")
    code = _text_field(data, "code").upper()
    if not name or not code:
        raise ValidationError("Name and code are required.", fields={"name": name, "code": code})

    f = Faculty(name=name, code=code)
    db.session.add(f)
    _commit_or_conflict("Faculty")
    return jsonify(f.to_dict()), 201


@admin_bp.route("/faculties/<int:faculty_id>/appoint-dean", methods=["PUT"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def faculty_appoint_dean(faculty_id):
    f = _get_or_404(Faculty, faculty_id)
    user_id = _int_or_none(_json_body().get("userId"), "userId")
    user = _get_or_404(User, user_id) if user_id else None

    if user is not None and not user.has_role(ROLE_DEAN):
        raise ValidationError("Only a user with the dean role can be appointed dean.")

    previous = f.dean_id
    f.dean_id = user.id if user else None
    if user is not None:
        user.faculty_id = f.id

    audit("appoint_dean", user_id=current_user.id, resource_type="faculty", resource_id=f.id,
          details={"previous": previous, "dean_id": f.dean_id})
    db.session.commit()
    logger.info("Faculty %s dean changed %s -> %s", f.code, previous, f.dean_id)
    return jsonify(f.to_dict())


# =========================
# Departments
# =========================
@admin_bp.route("/departments", methods=["GET"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def department_list():
    rows = Department.query.order_by(Department.name.asc()).all()
    return jsonify([d.to_dict() for d in rows])


@admin_bp.route("/departments", methods=["POST"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def department_create():
    data = _json_body()
    name = _text_field(data, "name")
    code = _text_field(data, "code").upper()
    if not name or not code:
        raise ValidationError("Name and code are required.", fields={"name": name, "code": code})

    faculty_id = _int_or_none(data.get("facultyId"), "facultyId")
    if faculty_id is not None:
        _get_or_404(Faculty, faculty_id)

    d = Department(name=name, code=code, faculty_id=faculty_id)
    db.session.add(d)
    _commit_or_conflict("Department")
    return jsonify(d.to_dict()), 201


@admin_bp.route("/departments/<int:department_id>/assign-hod", methods=["PUT"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def department_assign_hod(department_id):
    d = _get_or_404(Department, department_id)
    user_id = _int_or_none(_json_body().get("userId"), "userId")
    user = _get_or_404(User, user_id) if user_id else None

    if user is not None and not user.has_role(ROLE_ADMIN_OFFICER):
        # Routing still uses hod_id; flag it so the mismatch is visible
        logger.warning(
            "Department %s HOD set to user_id=%s with role=%s (expected %s)",
            d.code, user.id, user.role, ROLE_ADMIN_OFFICER
        )
        audit("hod_role_mismatch", user_id=current_user.id, resource_type="department", resource_id=d.id,
              details={"hod_id": user.id, "role": user.role})

    previous = d.hod_id
    d.hod_id = user.id if user else None

    audit("assign_hod", user_id=current_user.id, resource_type="department", resource_id=d.id,
          details={"previous": previous, "hod_id": d.hod_id})
    db.session.commit()
    return jsonify(d.to_dict())


# =========================
# Users
# =========================
def _apply_user_fields(u, data):
    if "role" in data:
        role = _text_field(data, "role").lower()
        if role not in USER_ROLES:
            raise ValidationError("Unknown role.", fields={"role": role})
        u.role = role

    if "status" in data:
        status = _text_field(data, "status").lower()
        if status not in (USER_STATUS_ACTIVE, USER_STATUS_INACTIVE):
            raise ValidationError("Unknown status.", fields={"status": status})
        u.status = status

    if "departmentId" in data:
        dept_id = _int_or_none(data.get("departmentId"), "departmentId")
        if dept_id is not None:
            _get_or_404(Department, dept_id)
        u.department_id = dept_id

    if "facultyId" in data:
        fac_id = _int_or_none(data.get("facultyId"), "facultyId")
        if fac_id is not None:
            _get_or_404(Faculty, fac_id)
        u.faculty_id = fac_id

    for key, attr in (("fullName", "full_name"), ("phone", "phone")):
        if key in data:
            setattr(u, attr, _text_field(data, key) or None)

    email = _text_field(data, "email")
    if email:
        u.email = email.lower()

    password = data.get("password")
    if password:
        if not isinstance(password, str):
            raise ValidationError("password must be text.", fields={"password": "must be a string"})
        u.set_password(password)


@admin_bp.route("/users", methods=["GET"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def user_list():
    q = User.query
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            User.full_name.ilike(like),
            User.email.ilike(like),
            User.staff_number.ilike(like),
        ))
    return jsonify([u.to_dict() for u in q.order_by(User.id.asc()).all()])


@admin_bp.route("/users", methods=["POST"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def user_create():
    data = _json_body()
    required = ("staffNumber", "email", "fullName", "role", "password")
    missing = [k for k in required if not _text_field(data, k)]
    if missing:
        raise ValidationError("Missing required fields.", fields={k: "required" for k in missing})

    u = User(
        staff_number=_text_field(data, "staffNumber"),
        email=_text_field(data, "email").lower(),
        full_name=_text_field(data, "fullName"),
        role=_text_field(data, "role").lower(),
        status=USER_STATUS_ACTIVE,
    )
    _apply_user_fields(u, data)
    db.session.add(u)
    _flush_or_conflict("User")
    audit("create_user", user_id=current_user.id, resource_type="user", resource_id=u.id,
          details={"role": u.role})
    db.session.commit()
    return jsonify(u.to_dict()), 201


@admin_bp.route("/users/<int:user_id>", methods=["PUT"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def user_update(user_id):
    u = _get_or_404(User, user_id)
    _apply_user_fields(u, _json_body())
    _flush_or_conflict("User")
    audit("update_user", user_id=current_user.id, resource_type="user", resource_id=u.id)
    _commit_or_conflict("User")
    return jsonify(u.to_dict())


# =========================
# Audit
# =========================
@admin_bp.route("/audit-logs", methods=["GET"])
@login_required
@roles_required(ROLE_SYS_ADMIN)
def audit_logs():
    rows = search_audit_logs(
        action=(request.args.get("action") or "").strip() or None,
        user_id=request.args.get("user_id", type=int),
        resource_id=(request.args.get("resource_id") or "").strip() or None,
    )
    return jsonify([r.to_dict() for r in rows])

# services/directory.py
# Read-only organizational lookups used by the routing engine.

from extensions import db
from models import Department, Faculty, User
from constants import USER_STATUS_ACTIVE


def get_user(user_id):
    if not user_id:
        return None
    return db_get(User, user_id)


def get_department(department_id):
    if not department_id:
        return None
    return db_get(Department, department_id)


def get_faculty(faculty_id):
    if not faculty_id:
        return None
    return db_get(Faculty, faculty_id)


def db_get(model, pk):
    try:
        return db.session.get(model, int(pk))
    except (TypeError, ValueError):
        return None


def _active_by_role(role):
    return (
        User.query
        .filter(User.role == role, User.status == USER_STATUS_ACTIVE)
        .order_by(User.id.asc())
    )


def find_user_by_role(role):
    """First active user holding ``role`` (directory order = id)."""
    if not role:
        return None
    return _active_by_role(role).first()


def find_user_by_role_and_faculty(role, faculty_id):
    if not role or not faculty_id:
        return None
    return _active_by_role(role).filter(User.faculty_id == faculty_id).first()


def is_active_user(user_id) -> bool:
    u = get_user(user_id)
    return bool(u and u.is_active)

from functools import wraps

from flask import abort, current_app, has_app_context
from flask_login import current_user

from constants import ROLE_ADMIN_OFFICER, ROLE_SYS_ADMIN
from services.timeline_service import has_participated


def roles_required(*roles):
    """Role gate for views.

    - sys_admin is always allowed.
    - Otherwise, the user must hold one of the given roles.
    """

    allowed_roles = [str(r).strip().lower() for r in roles if r]

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if current_user.has_role(ROLE_SYS_ADMIN):
                return f(*args, **kwargs)

            if any(current_user.has_role(r) for r in allowed_roles):
                return f(*args, **kwargs)

            abort(403)

        return decorated_function

    return decorator


def blanket_view_roles():
    if not has_app_context():
        return ()
    return tuple(current_app.config.get("REQUEST_VIEW_BLANKET_ROLES") or ())


def can_view_request(user, req) -> bool:
    """Who may read a request.

    Requester, current approver, anyone who acted on it, the HOD-role of its
    department, sys_admin, and the roles listed in
    REQUEST_VIEW_BLANKET_ROLES (deans and registrars by default).
    """
    if user is None or req is None:
        return False

    if user.id in (req.requestor_id, req.current_approver_id):
        return True

    if user.has_role(ROLE_SYS_ADMIN):
        return True

    if user.has_role(ROLE_ADMIN_OFFICER) and user.department_id and user.department_id == req.department_id:
        return True

    if user.has_role(*blanket_view_roles()):
        return True

    return has_participated(req.id, user.id)

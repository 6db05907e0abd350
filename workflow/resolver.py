# workflow/resolver.py
#
# Stage role -> concrete approver.
#
# Dispatch is a table keyed by role; every strategy returns a Resolution
# saying which path matched so callers can tell a precise match from a
# fallback (e.g. a SysAdmin standing in for a missing Dean).

from dataclasses import dataclass

from constants import (
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_REGISTRAR,
    ROLE_SYS_ADMIN,
)
from services import directory


@dataclass(frozen=True)
class Resolution:
    user_id: int
    role: str           # role the stage asked for
    source: str         # which lookup produced user_id
    fallback: bool = False


def _found(user, role, source, fallback=False):
    if user is None:
        return None
    return Resolution(user_id=user.id, role=role, source=source, fallback=fallback)


def _any_sysadmin(role):
    return _found(directory.find_user_by_role(ROLE_SYS_ADMIN), role, "any_sys_admin", fallback=True)


def _resolve_admin_officer(role, department):
    if department is not None and department.hod_id:
        hod = directory.get_user(department.hod_id)
        if hod is not None and hod.is_active:
            return _found(hod, role, "department_hod")

    return _found(
        directory.find_user_by_role(ROLE_ADMIN_OFFICER), role, "any_admin_officer", fallback=True
    )


def _resolve_dean(role, department):
    faculty_id = department.faculty_id if department is not None else None

    if faculty_id:
        dean = directory.find_user_by_role_and_faculty(ROLE_DEAN, faculty_id)
        if dean is not None:
            return _found(dean, role, "faculty_dean")

        # Appointed via the faculty record but faculty_id not set on the user
        faculty = directory.get_faculty(faculty_id)
        if faculty is not None and faculty.dean_id:
            appointed = directory.get_user(faculty.dean_id)
            if appointed is not None and appointed.is_active and appointed.has_role(ROLE_DEAN):
                return _found(appointed, role, "faculty_dean")

    any_dean = _found(directory.find_user_by_role(ROLE_DEAN), role, "any_dean", fallback=True)
    if any_dean:
        return any_dean
    return _any_sysadmin(role)


def _resolve_registrar(role, department):
    registrar = _found(directory.find_user_by_role(ROLE_REGISTRAR), role, "registrar")
    if registrar:
        return registrar
    return _any_sysadmin(role)


def _resolve_sys_admin(role, department):
    return _found(directory.find_user_by_role(ROLE_SYS_ADMIN), role, "sys_admin")


def _resolve_by_role(role, department):
    direct = _found(directory.find_user_by_role(role), role, "role_lookup")
    if direct:
        return direct
    return _any_sysadmin(role)


RESOLVERS = {
    ROLE_ADMIN_OFFICER: _resolve_admin_officer,
    ROLE_DEAN: _resolve_dean,
    ROLE_REGISTRAR: _resolve_registrar,
    ROLE_SYS_ADMIN: _resolve_sys_admin,
}


def resolve_approver(role, department):
    """Return a Resolution for ``role`` in ``department``'s context, or None.

    None means every fallback is exhausted (no SysAdmin at all); callers
    must treat that as a configuration error.
    """
    role = (role or "").strip().lower()
    strategy = RESOLVERS.get(role, _resolve_by_role)
    return strategy(role, department)


def resolve_approver_or_sysadmin(role, department):
    """Advancement variant: never leave a request without an approver while
    a SysAdmin exists."""
    res = resolve_approver(role, department)
    if res is not None:
        return res
    return _any_sysadmin((role or "").strip().lower())

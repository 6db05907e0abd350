from flask import has_request_context, request

from extensions import db
from models import AuditLog


def _client_ip():
    if not has_request_context():
        return None
    return request.headers.get("X-Forwarded-For", request.remote_addr)


def audit(action, user_id=None, resource_type=None, resource_id=None, details=None):
    """Add an AuditLog row to the current session (caller commits)."""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=_client_ip(),
    )
    db.session.add(log)
    return log


def search_audit_logs(action=None, user_id=None, resource_id=None, limit=200):
    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if user_id:
        q = q.filter(AuditLog.user_id == user_id)
    if resource_id:
        q = q.filter(AuditLog.resource_id == str(resource_id))
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

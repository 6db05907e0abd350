from sqlalchemy import or_

from models import ServiceRequest
from constants import STATUS_PENDING


def apply_request_filters(query, args):
    """Filters shared by "my requests" and "pending approvals".

    Supported args: search, status, type (``all`` disables a filter).
    """
    status = (args.get("status") or "").strip().lower()
    if status and status != "all":
        query = query.filter(ServiceRequest.status == status)

    rtype = (args.get("type") or "").strip().lower()
    if rtype and rtype != "all":
        query = query.filter(ServiceRequest.request_type == rtype)

    search = (args.get("search") or "").strip()
    if search:
        q = f"%{search}%"
        query = query.filter(or_(
            ServiceRequest.title.ilike(q),
            ServiceRequest.description.ilike(q),
            ServiceRequest.request_number.ilike(q),
        ))

    return query


def requests_of_user(user_id, args=None):
    query = ServiceRequest.query.filter(ServiceRequest.requestor_id == user_id)
    query = apply_request_filters(query, args or {})
    return query.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc()).all()


def pending_approvals_for(user_id, args=None):
    args = dict(args or {})
    # Status is fixed here; only search / type apply
    args.pop("status", None)

    query = ServiceRequest.query.filter(
        ServiceRequest.current_approver_id == user_id,
        ServiceRequest.status == STATUS_PENDING,
    )
    query = apply_request_filters(query, args)
    return query.order_by(ServiceRequest.submitted_at.asc(), ServiceRequest.id.asc()).all()

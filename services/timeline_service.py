from extensions import db
from models import RequestTimeline


def append_entry(request_id, user_id, action, comment=None, meta=None):
    """Append an immutable timeline entry (committed by the caller)."""
    entry = RequestTimeline(
        request_id=request_id,
        user_id=user_id,
        action=action,
        comment=(comment or None),
        meta=meta,
    )
    db.session.add(entry)
    return entry


def request_timeline(request_id):
    return (
        RequestTimeline.query
        .filter(RequestTimeline.request_id == request_id)
        .order_by(RequestTimeline.created_at.desc(), RequestTimeline.id.desc())
        .all()
    )


def has_participated(request_id, user_id) -> bool:
    return (
        db.session.query(RequestTimeline.id)
        .filter(RequestTimeline.request_id == request_id, RequestTimeline.user_id == user_id)
        .first()
        is not None
    )

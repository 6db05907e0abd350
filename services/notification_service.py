import logging

from sqlalchemy import update

from extensions import db
from models import Notification

logger = logging.getLogger(__name__)


def request_link(request_id):
    return f"/requests/{request_id}"


def notify(user_id, request_id, ntype, title, message, link=None, auto_commit=False):
    """Queue a notification for ``user_id`` in the current session.

    The caller owns the transaction; the row is committed together with the
    request transition that produced it.
    """
    if not user_id:
        return None

    n = Notification(
        user_id=int(user_id),
        request_id=request_id,
        type=ntype,
        title=title,
        message=message,
        is_read=False,
        link=link or (request_link(request_id) if request_id else None),
    )
    db.session.add(n)

    if auto_commit:
        db.session.commit()
    return n


def user_notifications(user_id):
    return (
        Notification.query
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def unread_count(user_id) -> int:
    return (
        Notification.query
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def mark_read(notification_id, user_id) -> bool:
    n = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not n:
        return False
    if not n.is_read:
        n.is_read = True
        db.session.commit()
    return True


def mark_all_read(user_id) -> int:
    result = db.session.execute(
        update(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        )
        .values(is_read=True)
    )
    db.session.commit()

    count = getattr(result, "rowcount", 0) or 0
    logger.info("Marked %s notifications as read for user_id=%s", count, user_id)
    return count


def delete_notification(notification_id, user_id) -> bool:
    n = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not n:
        return False
    db.session.delete(n)
    db.session.commit()
    return True

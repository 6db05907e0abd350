# workflow/engine.py

import logging
import time
import uuid
from dataclasses import dataclass
from functools import wraps

from flask import current_app, has_app_context
from sqlalchemy import update

from extensions import db
from models import ServiceRequest, utcnow
from constants import (
    ACTION_APPROVE,
    ACTION_REJECT,
    ACTION_REQUEST_MODIFICATION,
    APPROVER_ACTIONS,
    CANCELLABLE_STATUSES,
    COMMENT_REQUIRED_ACTIONS,
    ROLE_REGISTRAR,
    ROLE_SYS_ADMIN,
    STATUS_APPROVED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_DRAFT,
    STATUS_MODIFICATION_REQUESTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUS_SUBMITTED,
)
from services import directory
from services.audit_service import audit
from services.notification_service import notify
from services.timeline_service import append_entry
from workflow.config_store import resolve_workflow
from workflow.errors import (
    AlreadyFinalized,
    CommentRequired,
    ConcurrentModification,
    InvalidTransition,
    NoApproverResolvable,
    NotAuthorizedApprover,
    ValidationError,
    WorkflowError,
)
from workflow.resolver import resolve_approver, resolve_approver_or_sysadmin
from workflow.validation import normalize_keys, payload_from_request, validate_request_payload

logger = logging.getLogger(__name__)


# =========================
# Helpers
# =========================
def generate_request_number():
    prefix = "REQ"
    if has_app_context():
        prefix = current_app.config.get("REQUEST_NUMBER_PREFIX") or prefix
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:5].upper()}"


@dataclass(frozen=True)
class Snapshot:
    """The fields a transition was computed from."""
    status: str
    workflow_stage: int
    current_approver_id: int | None

    @classmethod
    def of(cls, req):
        return cls(
            status=req.status,
            workflow_stage=int(req.workflow_stage or 0),
            current_approver_id=req.current_approver_id,
        )


def _commit_transition(req, expected: Snapshot, values: dict):
    """Conditional UPDATE: only applies if the row still matches ``expected``.

    Raises ConcurrentModification when another transition got there first.
    """
    approver_cond = (
        ServiceRequest.current_approver_id.is_(None)
        if expected.current_approver_id is None
        else ServiceRequest.current_approver_id == expected.current_approver_id
    )

    values = dict(values)
    values["updated_at"] = utcnow()

    result = db.session.execute(
        update(ServiceRequest)
        .where(
            ServiceRequest.id == req.id,
            ServiceRequest.status == expected.status,
            ServiceRequest.workflow_stage == expected.workflow_stage,
            approver_cond,
        )
        .values(**values),
        execution_options={"synchronize_session": False},
    )

    if result.rowcount != 1:
        logger.warning(
            "Concurrent modification on request id=%s (expected status=%s stage=%s approver=%s)",
            req.id, expected.status, expected.workflow_stage, expected.current_approver_id
        )
        raise ConcurrentModification(request_id=req.id)

    # Reload from the row we just wrote on next attribute access
    db.session.expire(req)


def _finish(auto_commit):
    if auto_commit:
        db.session.commit()


def _rollback_on_error(fn):
    """Engine operations are one unit: any failure discards pending rows."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except WorkflowError as e:
            db.session.rollback()
            if e.operator_alert:
                logger.error("Workflow configuration error in %s: %s %s", fn.__name__, e.code, e.context)
            else:
                logger.info("Workflow operation %s refused: %s", fn.__name__, e.code)
            raise
        except Exception:
            db.session.rollback()
            logger.exception("Workflow operation %s failed", fn.__name__)
            raise

    return wrapper


def _record_fallback(req, res, actor_id, stage_index):
    """A stage role was filled by a fallback path; make it discoverable."""
    logger.warning(
        "Approver fallback for request %s stage %s: wanted role=%s, got user_id=%s via %s",
        req.request_number, stage_index, res.role, res.user_id, res.source
    )
    audit(
        "approver_fallback",
        user_id=actor_id,
        resource_type="request",
        resource_id=req.id,
        details={
            "role": res.role,
            "source": res.source,
            "approver_id": res.user_id,
            "stage": stage_index,
            "department_id": req.department_id,
        },
    )


def _stage_label(stage):
    return (stage or {}).get("label") or (stage or {}).get("role") or "next stage"


def _optional_text(value, field):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text.", fields={field: "must be a string"})
    return value.strip()


def _ensure_requestor(req, user, verb):
    if user is None or user.id != req.requestor_id:
        raise NotAuthorizedApprover(f"Only the requester can {verb} this request.")


# =========================
# Creation / routing
# =========================
@_rollback_on_error
def create_request(requestor, payload, submit=True, auto_commit=True):
    """Validate ``payload`` and create a request for ``requestor``.

    With ``submit`` the request is routed immediately; routing failures
    (no workflow, no approver) leave no row behind.
    """
    cleaned = validate_request_payload(payload)

    department = directory.get_department(getattr(requestor, "department_id", None))
    if department is None:
        raise ValidationError(
            "User's department not found.",
            fields={"department_id": "The requester has no department."}
        )

    req = ServiceRequest(
        request_number=generate_request_number(),
        requestor_id=requestor.id,
        department_id=department.id,
        status=STATUS_DRAFT,
        workflow_stage=0,
        current_approver_id=None,
        **cleaned,
    )

    if not submit:
        db.session.add(req)
        db.session.flush()
        append_entry(req.id, requestor.id, "Draft created")
        audit("create_draft", user_id=requestor.id, resource_type="request", resource_id=req.id,
              details={"requestType": req.request_type})
        _finish(auto_commit)
        logger.info("Draft %s created by user_id=%s", req.request_number, requestor.id)
        return req

    return _initiate_routing(req, department, requestor, None, auto_commit)


@_rollback_on_error
def initiate_routing(req, requestor_department, actor=None, changes=None, auto_commit=True):
    """Put ``req`` at stage 0 of its workflow with a resolved approver.

    ``req`` may be new (not yet in the session) or an existing draft.
    """
    return _initiate_routing(req, requestor_department, actor, changes, auto_commit)


def _initiate_routing(req, requestor_department, actor, changes, auto_commit):
    if requestor_department is None:
        raise ValidationError("User's department not found.", fields={"department_id": "required"})

    is_new = req.id is None
    if not is_new and req.status not in (STATUS_DRAFT, STATUS_SUBMITTED):
        if req.is_final:
            raise AlreadyFinalized()
        raise InvalidTransition("Only draft requests can be submitted.")

    cfg = resolve_workflow(req.request_type, requestor_department.id)
    first = cfg.stage_at(0)

    res = resolve_approver(first.get("role"), requestor_department)
    if res is None:
        raise NoApproverResolvable(
            f"No user available for role '{first.get('role')}'.",
            role=first.get("role"),
            department_id=requestor_department.id,
        )

    now = utcnow()
    values = dict(changes or {})
    values.update(
        status=STATUS_PENDING,
        workflow_stage=0,
        current_approver_id=res.user_id,
        submitted_at=now,
        department_id=requestor_department.id,
    )

    if is_new:
        for k, v in values.items():
            setattr(req, k, v)
        db.session.add(req)
        db.session.flush()
    else:
        _commit_transition(req, Snapshot.of(req), values)

    actor_id = actor.id if actor is not None else req.requestor_id

    append_entry(
        req.id, actor_id, "Request created and submitted",
        meta={"stage": 0, "role": first.get("role"), "approver_id": res.user_id},
    )
    notify(
        res.user_id, req.id, "approval_required",
        "Approval Required",
        f'Request "{req.title}" ({req.request_number}) is awaiting your approval ({_stage_label(first)}).',
    )
    audit("create_request" if is_new else "submit_request", user_id=actor_id,
          resource_type="request", resource_id=req.id, details={"requestType": req.request_type})
    if res.fallback:
        _record_fallback(req, res, actor_id, 0)

    _finish(auto_commit)
    logger.info(
        "Request %s routed: stage=0 role=%s approver_id=%s",
        req.request_number, first.get("role"), res.user_id
    )
    return req


# =========================
# Approver actions
# =========================
def _approve(req, actor, comment, expected):
    department = directory.get_department(req.department_id)
    cfg = resolve_workflow(req.request_type, req.department_id)
    stages = list(cfg.stages or [])

    next_index = expected.workflow_stage + 1
    if next_index < len(stages):
        stage = stages[next_index]
        res = resolve_approver_or_sysadmin(stage.get("role"), department)
        if res is None:
            raise NoApproverResolvable(
                f"No user available for role '{stage.get('role')}'.",
                role=stage.get("role"),
                department_id=req.department_id,
            )

        _commit_transition(req, expected, {
            "status": STATUS_PENDING,
            "workflow_stage": next_index,
            "current_approver_id": res.user_id,
        })

        label = _stage_label(stage)
        append_entry(
            req.id, actor.id,
            f"Request approved by {actor.full_name}, forwarded to {label} (stage {next_index + 1})",
            comment=comment,
            meta={"from_stage": expected.workflow_stage, "to_stage": next_index,
                  "role": stage.get("role"), "approver_id": res.user_id},
        )
        notify(
            res.user_id, req.id, "approval_required",
            "Approval Required",
            f'Request "{req.title}" ({req.request_number}) is awaiting your approval ({label}).',
        )
        notify(
            req.requestor_id, req.id, ACTION_APPROVE,
            "Request Forwarded",
            f'Your request "{req.title}" was approved by {actor.full_name} and forwarded to {label}.',
        )
        if res.fallback:
            _record_fallback(req, res, actor.id, next_index)
        return

    _commit_transition(req, expected, {
        "status": STATUS_APPROVED,
        "completed_at": utcnow(),
        "current_approver_id": None,
    })
    append_entry(
        req.id, actor.id, "Request fully approved", comment=comment,
        meta={"from_stage": expected.workflow_stage, "to_status": STATUS_APPROVED},
    )
    notify(
        req.requestor_id, req.id, ACTION_APPROVE,
        "Request Approved",
        f'Your request "{req.title}" has been approved.',
    )


def _reject(req, actor, comment, expected):
    _commit_transition(req, expected, {
        "status": STATUS_REJECTED,
        "completed_at": utcnow(),
        "current_approver_id": None,
    })
    append_entry(
        req.id, actor.id, "Request rejected", comment=comment,
        meta={"stage": expected.workflow_stage, "to_status": STATUS_REJECTED},
    )
    notify(
        req.requestor_id, req.id, ACTION_REJECT,
        "Request Rejected",
        f'Your request "{req.title}" has been rejected.',
    )


def _request_modification(req, actor, comment, expected):
    _commit_transition(req, expected, {
        "status": STATUS_MODIFICATION_REQUESTED,
        "current_approver_id": req.requestor_id,
    })
    append_entry(
        req.id, actor.id, "Modification requested", comment=comment,
        meta={"stage": expected.workflow_stage, "to_status": STATUS_MODIFICATION_REQUESTED},
    )
    notify(
        req.requestor_id, req.id, ACTION_REQUEST_MODIFICATION,
        "Modification Requested",
        f'Your request "{req.title}" has been returned for modification.',
    )
    notify(
        actor.id, req.id, ACTION_REQUEST_MODIFICATION,
        "Returned for Modification",
        f'Request "{req.title}" ({req.request_number}) was returned to the requester for modification.',
    )


ACTION_HANDLERS = {
    ACTION_APPROVE: _approve,
    ACTION_REJECT: _reject,
    ACTION_REQUEST_MODIFICATION: _request_modification,
}


@_rollback_on_error
def apply_action(req, acting_user, action, comment=None, expected_stage=None, auto_commit=True):
    """Approve / reject / request modification on a pending request.

    ``expected_stage`` lets a client pass the stage it was looking at; a
    mismatch is reported as a concurrent modification.
    """
    action = _optional_text(action, "action").lower()
    if action not in APPROVER_ACTIONS:
        raise ValidationError("Invalid action.", fields={"action": action})

    if req.is_final:
        raise AlreadyFinalized()

    if acting_user is None or acting_user.id != req.current_approver_id:
        raise NotAuthorizedApprover()

    if req.status != STATUS_PENDING:
        raise InvalidTransition("The request is not awaiting approval.")

    comment = _optional_text(comment, "comment")
    if action in COMMENT_REQUIRED_ACTIONS and not comment:
        raise CommentRequired()

    expected = Snapshot.of(req)
    if expected_stage is not None:
        try:
            stale = int(expected_stage) != expected.workflow_stage
        except (TypeError, ValueError):
            raise ValidationError("Invalid workflow stage.", fields={"workflowStage": expected_stage})
        if stale:
            raise ConcurrentModification(request_id=req.id)

    ACTION_HANDLERS[action](req, acting_user, comment or None, expected)

    audit(f"{action}_request", user_id=acting_user.id, resource_type="request", resource_id=req.id,
          details={"stage": expected.workflow_stage})

    _finish(auto_commit)
    logger.info(
        "Request id=%s: %s by user_id=%s at stage %s -> status=%s stage=%s",
        req.id, action, acting_user.id, expected.workflow_stage, req.status, req.workflow_stage
    )
    return req


# =========================
# Requester operations
# =========================
@_rollback_on_error
def resubmit_request(req, requestor, changes=None, auto_commit=True):
    """Send a draft or a request returned for modification back into approval.

    A returned request resumes at the stage that asked for the change.
    """
    _ensure_requestor(req, requestor, "resubmit")

    if req.is_final:
        raise AlreadyFinalized()
    if req.status not in (STATUS_DRAFT, STATUS_MODIFICATION_REQUESTED):
        raise InvalidTransition("Only drafts or requests returned for modification can be resubmitted.")

    payload = payload_from_request(req)
    if changes:
        changed = normalize_keys(changes)
        merged = dict(payload)
        merged.update(changed)
        # New dates without an explicit count: recompute working days
        if {"start_date", "end_date"} & set(changed) and "total_working_days" not in changed:
            merged["total_working_days"] = None
        if str(merged.get("request_type") or "").strip().lower() != req.request_type:
            raise ValidationError("The request type cannot be changed.", fields={"request_type": "immutable"})
        cleaned = validate_request_payload(merged)
    else:
        cleaned = validate_request_payload(payload)

    if req.status == STATUS_DRAFT:
        department = directory.get_department(requestor.department_id)
        return _initiate_routing(req, department, requestor, cleaned, auto_commit)

    expected = Snapshot.of(req)
    department = directory.get_department(req.department_id)
    cfg = resolve_workflow(req.request_type, req.department_id)
    stages = list(cfg.stages or [])
    stage_index = min(expected.workflow_stage, len(stages) - 1)
    stage = stages[stage_index]

    res = resolve_approver_or_sysadmin(stage.get("role"), department)
    if res is None:
        raise NoApproverResolvable(role=stage.get("role"), department_id=req.department_id)

    values = dict(cleaned)
    values.update(
        status=STATUS_PENDING,
        workflow_stage=stage_index,
        current_approver_id=res.user_id,
        submitted_at=utcnow(),
    )
    _commit_transition(req, expected, values)

    label = _stage_label(stage)
    append_entry(
        req.id, requestor.id, "Request resubmitted",
        meta={"stage": stage_index, "role": stage.get("role"), "approver_id": res.user_id},
    )
    notify(
        res.user_id, req.id, "approval_required",
        "Approval Required",
        f'Request "{req.title}" ({req.request_number}) was resubmitted and awaits your approval ({label}).',
    )
    audit("resubmit_request", user_id=requestor.id, resource_type="request", resource_id=req.id,
          details={"stage": stage_index})
    if res.fallback:
        _record_fallback(req, res, requestor.id, stage_index)

    _finish(auto_commit)
    logger.info("Request id=%s resubmitted at stage %s -> approver_id=%s", req.id, stage_index, res.user_id)
    return req


@_rollback_on_error
def cancel_request(req, requestor, reason=None, auto_commit=True):
    _ensure_requestor(req, requestor, "cancel")
    reason = _optional_text(reason, "reason") or None

    if req.is_final:
        raise AlreadyFinalized()
    if req.status not in CANCELLABLE_STATUSES:
        raise InvalidTransition("This request can no longer be cancelled.")

    expected = Snapshot.of(req)
    previous_approver = expected.current_approver_id

    _commit_transition(req, expected, {
        "status": STATUS_CANCELLED,
        "current_approver_id": None,
        "completed_at": utcnow(),
    })

    append_entry(
        req.id, requestor.id, "Request cancelled", comment=reason,
        meta={"from_status": expected.status, "stage": expected.workflow_stage},
    )
    if previous_approver and previous_approver != req.requestor_id:
        notify(
            previous_approver, req.id, "cancelled",
            "Request Cancelled",
            f'Request "{req.title}" ({req.request_number}) was cancelled by the requester.',
        )
    audit("cancel_request", user_id=requestor.id, resource_type="request", resource_id=req.id)

    _finish(auto_commit)
    logger.info("Request id=%s cancelled by requester", req.id)
    return req


@_rollback_on_error
def complete_request(req, acting_user, comment=None, auto_commit=True):
    """Close out an approved request (e.g. leave taken, items delivered)."""
    if acting_user is None or not acting_user.has_role(ROLE_SYS_ADMIN, ROLE_REGISTRAR):
        raise NotAuthorizedApprover("Only a registrar or administrator can complete requests.")
    comment = _optional_text(comment, "comment") or None

    if req.status != STATUS_APPROVED:
        if req.is_final:
            raise AlreadyFinalized()
        raise InvalidTransition("Only approved requests can be completed.")

    expected = Snapshot.of(req)
    _commit_transition(req, expected, {
        "status": STATUS_COMPLETED,
        "current_approver_id": None,
        "completed_at": utcnow(),
    })

    append_entry(req.id, acting_user.id, "Request completed", comment=comment)
    notify(
        req.requestor_id, req.id, "completed",
        "Request Completed",
        f'Your request "{req.title}" has been completed.',
    )
    audit("complete_request", user_id=acting_user.id, resource_type="request", resource_id=req.id)

    _finish(auto_commit)
    return req

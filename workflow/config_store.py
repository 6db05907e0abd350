# workflow/config_store.py
# Per request type (optionally per department) ordered approval stages.

import logging

from extensions import db
from models import WorkflowConfig
from constants import (
    REQUEST_TYPES,
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_LABELS,
    ROLE_REGISTRAR,
    TYPE_CONFERENCE_TRAINING,
    TYPE_GENERIC,
    TYPE_LEAVE,
    TYPE_RESOURCE_REQUISITION,
    USER_ROLES,
)
from workflow.errors import NoWorkflowConfigured, ValidationError

logger = logging.getLogger(__name__)


def _stage(role, label):
    return {"role": role, "label": label}


HOD_STAGE = _stage(ROLE_ADMIN_OFFICER, "HOD Approval")
DEAN_STAGE = _stage(ROLE_DEAN, "Dean Approval")
REGISTRAR_STAGE = _stage(ROLE_REGISTRAR, "Registrar Approval")

DEFAULT_WORKFLOWS = {
    TYPE_LEAVE: [HOD_STAGE, DEAN_STAGE, REGISTRAR_STAGE],
    TYPE_CONFERENCE_TRAINING: [HOD_STAGE, DEAN_STAGE, REGISTRAR_STAGE],
    TYPE_RESOURCE_REQUISITION: [HOD_STAGE, REGISTRAR_STAGE],
    TYPE_GENERIC: [HOD_STAGE],
}


def get_workflow_config(request_type, department_id=None):
    """Department-specific config first, then the type's default."""
    if department_id:
        specific = WorkflowConfig.query.filter_by(
            request_type=request_type,
            department_id=department_id,
        ).first()
        if specific:
            return specific

    return (
        WorkflowConfig.query
        .filter(
            WorkflowConfig.request_type == request_type,
            WorkflowConfig.department_id.is_(None),
        )
        .first()
    )


def resolve_workflow(request_type, department_id=None):
    """Like get_workflow_config, but a missing or empty config is an error."""
    cfg = get_workflow_config(request_type, department_id)
    if cfg is None or not list(cfg.stages or []):
        logger.error(
            "No usable workflow config for request_type=%s department_id=%s",
            request_type, department_id
        )
        raise NoWorkflowConfigured(
            request_type=request_type,
            department_id=department_id,
        )
    return cfg


def clean_stages(stages):
    if not isinstance(stages, list) or not stages:
        raise ValidationError("A workflow needs at least one stage.", fields={"stages": "required"})

    cleaned = []
    for idx, st in enumerate(stages):
        if isinstance(st, str):
            st = {"role": st}
        if not isinstance(st, dict):
            raise ValidationError(f"Stage #{idx + 1} is invalid.", fields={"stages": f"stage {idx + 1}"})

        role = str(st.get("role") or "").strip().lower()
        if role not in USER_ROLES:
            raise ValidationError(
                f"Stage #{idx + 1} has an unknown role: {role or '(empty)'}",
                fields={"stages": f"stage {idx + 1}"}
            )
        label = str(st.get("label") or "").strip() or f"{ROLE_LABELS.get(role, role)} Approval"
        cleaned.append(_stage(role, label))
    return cleaned


def save_workflow_config(request_type, stages, department_id=None, auto_commit=True):
    request_type = (request_type or "").strip().lower()
    if request_type not in REQUEST_TYPES:
        raise ValidationError("Unknown request type.", fields={"request_type": request_type})

    cleaned = clean_stages(stages)

    cfg = WorkflowConfig.query.filter_by(
        request_type=request_type,
        department_id=department_id,
    ).first()
    if cfg is None:
        cfg = WorkflowConfig(request_type=request_type, department_id=department_id)
        db.session.add(cfg)

    cfg.stages = cleaned
    cfg.is_default = department_id is None

    if auto_commit:
        db.session.commit()

    logger.info(
        "Workflow config saved: type=%s dept=%s stages=%s",
        request_type, department_id, [s["role"] for s in cleaned]
    )
    return cfg


def list_workflow_configs():
    return (
        WorkflowConfig.query
        .order_by(WorkflowConfig.request_type.asc(), WorkflowConfig.department_id.asc())
        .all()
    )


def ensure_default_workflows(auto_commit=True):
    """Create the default config for every request type that has none."""
    created = []
    for request_type, stages in DEFAULT_WORKFLOWS.items():
        exists = (
            WorkflowConfig.query
            .filter(
                WorkflowConfig.request_type == request_type,
                WorkflowConfig.department_id.is_(None),
            )
            .first()
        )
        if exists:
            continue
        cfg = WorkflowConfig(
            request_type=request_type,
            department_id=None,
            stages=[dict(s) for s in stages],
            is_default=True,
        )
        db.session.add(cfg)
        created.append(cfg)

    if created and auto_commit:
        db.session.commit()
    return created

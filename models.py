from datetime import datetime, timezone

from extensions import db
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin

from constants import (
    DEFAULT_PRIORITY,
    FINAL_STATUSES,
    ROLE_LABELS,
    STATUS_DRAFT,
    STATUS_PENDING,
    USER_STATUS_ACTIVE,
)


def utcnow():
    """Naive UTC timestamp (columns are stored without tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


# ======================
# Organizational directory
# ======================
class Faculty(db.Model):
    __tablename__ = "faculties"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    code = db.Column(db.String(50), unique=True, index=True, nullable=False)

    # The dean who approves for this faculty (set by "appoint dean")
    dean_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    dean = db.relationship("User", foreign_keys=[dean_id], lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "deanId": self.dean_id,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Faculty {self.code}>"


class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    code = db.Column(db.String(50), unique=True, index=True, nullable=False)

    faculty_id = db.Column(db.Integer, db.ForeignKey("faculties.id"), nullable=True, index=True)

    # Head of department; expected to be an admin_officer (not enforced)
    hod_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    faculty = db.relationship("Faculty", backref=db.backref("departments", lazy="selectin"))
    hod = db.relationship("User", foreign_keys=[hod_id], lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "facultyId": self.faculty_id,
            "hodId": self.hod_id,
            "createdAt": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Department {self.code}>"


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    staff_number = db.Column(db.String(50), unique=True, index=True, nullable=False)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(50), index=True, nullable=False)

    # Plain ids (no FK) to keep the users table free of cycles with
    # faculties.dean_id / departments.hod_id.
    department_id = db.Column(db.Integer, nullable=True, index=True)
    # Meaningful mainly for deans: the faculty they approve for
    faculty_id = db.Column(db.Integer, nullable=True, index=True)

    status = db.Column(db.String(20), default=USER_STATUS_ACTIVE, nullable=False)

    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password or "")

    @property
    def is_active(self):
        return (self.status or "") == USER_STATUS_ACTIVE

    def has_role(self, *roles) -> bool:
        mine = (self.role or "").strip().lower()
        return any(mine == (r or "").strip().lower() for r in roles)

    @property
    def role_label(self) -> str:
        return ROLE_LABELS.get(self.role, self.role or "")

    def to_dict(self):
        return {
            "id": self.id,
            "staffNumber": self.staff_number,
            "email": self.email,
            "fullName": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "departmentId": self.department_id,
            "facultyId": self.faculty_id,
            "status": self.status,
            "lastLogin": _iso(self.last_login),
        }

    def __repr__(self) -> str:
        return f"<User {self.staff_number} role={self.role}>"


# ======================
# Workflow configuration
# ======================
class WorkflowConfig(db.Model):
    __tablename__ = "workflow_configs"
    __table_args__ = (
        db.UniqueConstraint("request_type", "department_id", name="uq_workflow_config_type_dept"),
    )

    id = db.Column(db.Integer, primary_key=True)
    request_type = db.Column(db.String(50), nullable=False, index=True)

    # NULL => default/global config for this request type
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True, index=True)

    # Ordered list of {"role": ..., "label": ...}
    stages = db.Column(db.JSON, nullable=False, default=list)
    is_default = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    department = db.relationship("Department")

    def stage_at(self, index: int):
        stages = list(self.stages or [])
        if 0 <= index < len(stages):
            return stages[index]
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "requestType": self.request_type,
            "departmentId": self.department_id,
            "stages": list(self.stages or []),
            "isDefault": bool(self.is_default),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<WorkflowConfig {self.request_type} dept={self.department_id} stages={len(self.stages or [])}>"


# ======================
# Requests
# ======================
class ServiceRequest(db.Model):
    __tablename__ = "requests"

    id = db.Column(db.Integer, primary_key=True)
    request_number = db.Column(db.String(64), unique=True, index=True, nullable=False)
    request_type = db.Column(db.String(50), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(50), default=STATUS_DRAFT, nullable=False, index=True)
    priority = db.Column(db.String(20), default=DEFAULT_PRIORITY, nullable=False)

    requestor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # Snapshot of the requester's department at submission time
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True, index=True)
    current_approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    workflow_stage = db.Column(db.Integer, default=0, nullable=False)

    # Leave
    leave_type = db.Column(db.String(30), nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    total_working_days = db.Column(db.Integer, nullable=True)
    substitute_staff_name = db.Column(db.String(200), nullable=True)

    # Conference / Training
    event_name = db.Column(db.String(255), nullable=True)
    organizer = db.Column(db.String(255), nullable=True)
    event_dates = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(255), nullable=True)
    estimated_cost = db.Column(db.String(100), nullable=True)
    conference_paper = db.Column(db.Boolean, nullable=True)
    travel_request = db.Column(db.Boolean, nullable=True)

    # Resource requisition
    item_list = db.Column(db.JSON, nullable=True)
    justification = db.Column(db.Text, nullable=True)
    delivery_location = db.Column(db.String(255), nullable=True)
    budget_code = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    requestor = db.relationship("User", foreign_keys=[requestor_id], lazy="joined")
    current_approver = db.relationship("User", foreign_keys=[current_approver_id], lazy="joined")
    department = db.relationship("Department", lazy="joined")

    timeline = db.relationship(
        "RequestTimeline",
        backref="request",
        order_by="RequestTimeline.id",
        lazy="selectin",
    )

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING

    def to_dict(self):
        return {
            "id": self.id,
            "requestNumber": self.request_number,
            "requestType": self.request_type,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "requestorId": self.requestor_id,
            "departmentId": self.department_id,
            "currentApproverId": self.current_approver_id,
            "workflowStage": self.workflow_stage,
            "leaveType": self.leave_type,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "totalWorkingDays": self.total_working_days,
            "substituteStaffName": self.substitute_staff_name,
            "eventName": self.event_name,
            "organizer": self.organizer,
            "eventDates": self.event_dates,
            "location": self.location,
            "estimatedCost": self.estimated_cost,
            "conferencePaper": self.conference_paper,
            "travelRequest": self.travel_request,
            "itemList": self.item_list,
            "justification": self.justification,
            "deliveryLocation": self.delivery_location,
            "budgetCode": self.budget_code,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "submittedAt": _iso(self.submitted_at),
            "completedAt": _iso(self.completed_at),
        }

    def __repr__(self) -> str:
        return f"<ServiceRequest {self.request_number} status={self.status} stage={self.workflow_stage}>"


class RequestTimeline(db.Model):
    __tablename__ = "request_timeline"

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("requests.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    action = db.Column(db.String(255), nullable=False)
    comment = db.Column(db.Text, nullable=True)
    # e.g. {"from_status": ..., "to_status": ..., "stage": ...}
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    user = db.relationship("User", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "userId": self.user_id,
            "userName": self.user.full_name if self.user else None,
            "action": self.action,
            "comment": self.comment,
            "metadata": self.meta,
            "createdAt": _iso(self.created_at),
        }


# ======================
# Notifications
# ======================
class Notification(db.Model):
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notification_user_read", "user_id", "is_read"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    request_id = db.Column(db.Integer, db.ForeignKey("requests.id"), nullable=True)

    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.String(500), nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    link = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "requestId": self.request_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "isRead": bool(self.is_read),
            "link": self.link,
            "createdAt": _iso(self.created_at),
        }


# ======================
# Audit
# ======================
class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    action = db.Column(db.String(100), nullable=False, index=True)
    resource_type = db.Column(db.String(50), nullable=True)
    resource_id = db.Column(db.String(64), nullable=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    user = db.relationship("User", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "action": self.action,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "details": self.details,
            "ipAddress": self.ip_address,
            "createdAt": _iso(self.created_at),
        }

# constants.py
# Closed vocabularies shared by models, engine and API.

# ======================
# Roles
# ======================
ROLE_ACADEMIC_STAFF = "academic_staff"
ROLE_ADMIN_OFFICER = "admin_officer"   # Head-of-Department equivalent
ROLE_DEAN = "dean"
ROLE_REGISTRAR = "registrar"
ROLE_SYS_ADMIN = "sys_admin"

USER_ROLES = (
    ROLE_ACADEMIC_STAFF,
    ROLE_ADMIN_OFFICER,
    ROLE_DEAN,
    ROLE_REGISTRAR,
    ROLE_SYS_ADMIN,
)

ROLE_LABELS = {
    ROLE_ACADEMIC_STAFF: "Academic Staff",
    ROLE_ADMIN_OFFICER: "Head of Department",
    ROLE_DEAN: "Dean",
    ROLE_REGISTRAR: "Registrar",
    ROLE_SYS_ADMIN: "System Administrator",
}

# ======================
# Request types
# ======================
TYPE_LEAVE = "leave"
TYPE_CONFERENCE_TRAINING = "conference_training"
TYPE_RESOURCE_REQUISITION = "resource_requisition"
TYPE_GENERIC = "generic"

REQUEST_TYPES = (
    TYPE_LEAVE,
    TYPE_CONFERENCE_TRAINING,
    TYPE_RESOURCE_REQUISITION,
    TYPE_GENERIC,
)

# ======================
# Request statuses
# ======================
STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_MODIFICATION_REQUESTED = "modification_requested"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

REQUEST_STATUSES = (
    STATUS_DRAFT,
    STATUS_SUBMITTED,
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_MODIFICATION_REQUESTED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)

FINAL_STATUSES = (
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)

CANCELLABLE_STATUSES = (
    STATUS_DRAFT,
    STATUS_PENDING,
    STATUS_MODIFICATION_REQUESTED,
)

# ======================
# Approver actions
# ======================
ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"
ACTION_REQUEST_MODIFICATION = "request_modification"

APPROVER_ACTIONS = (
    ACTION_APPROVE,
    ACTION_REJECT,
    ACTION_REQUEST_MODIFICATION,
)

COMMENT_REQUIRED_ACTIONS = (
    ACTION_REJECT,
    ACTION_REQUEST_MODIFICATION,
)

# ======================
# Request payload vocabularies
# ======================
LEAVE_TYPES = ("annual", "sick", "compassionate", "casual", "study")

PRIORITIES = ("low", "normal", "high", "urgent")
DEFAULT_PRIORITY = "normal"

USER_STATUS_ACTIVE = "active"
USER_STATUS_INACTIVE = "inactive"

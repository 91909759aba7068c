"""Enum definitions for application constants."""

from app.db.enums.activity import ActivityAction, EntityType
from app.db.enums.auth import Role
from app.db.enums.defaults import (
    DEFAULT_CLIENT_STATUS,
    DEFAULT_DOCUMENT_STATUS,
    DEFAULT_JOB_STATUS,
    DEFAULT_PAYMENT_STATUS,
    DEFAULT_ROLE,
    DEFAULT_SUBMISSION_SOURCE,
    DEFAULT_SUBMISSION_STATUS,
    DEFAULT_WORKFLOW_STAGE,
)
from app.db.enums.documents import (
    DocumentStatus,
    DocumentType,
    PaymentStatus,
    StorageType,
)
from app.db.enums.jobs import JobStatus, JobType
from app.db.enums.permissions import ROLES_ADMIN, ROLES_CAN_VIEW, ROLES_STAFF
from app.db.enums.notifications import NotificationType
from app.db.enums.submissions import (
    ClientStatus,
    ServiceType,
    SubmissionSource,
    SubmissionStatus,
    WorkflowAction,
    WorkflowStage,
)

__all__ = [
    "ActivityAction",
    "EntityType",
    "Role",
    "DEFAULT_CLIENT_STATUS",
    "DEFAULT_DOCUMENT_STATUS",
    "DEFAULT_JOB_STATUS",
    "DEFAULT_PAYMENT_STATUS",
    "DEFAULT_ROLE",
    "DEFAULT_SUBMISSION_SOURCE",
    "DEFAULT_SUBMISSION_STATUS",
    "DEFAULT_WORKFLOW_STAGE",
    "DocumentStatus",
    "DocumentType",
    "PaymentStatus",
    "StorageType",
    "JobStatus",
    "JobType",
    "NotificationType",
    "ROLES_ADMIN",
    "ROLES_CAN_VIEW",
    "ROLES_STAFF",
    "ClientStatus",
    "ServiceType",
    "SubmissionSource",
    "SubmissionStatus",
    "WorkflowAction",
    "WorkflowStage",
]

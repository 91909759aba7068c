"""Centralized defaults for enums."""

from app.db.enums.auth import Role
from app.db.enums.documents import DocumentStatus, PaymentStatus
from app.db.enums.jobs import JobStatus
from app.db.enums.submissions import (
    ClientStatus,
    SubmissionSource,
    SubmissionStatus,
    WorkflowStage,
)


DEFAULT_ROLE: Role = Role.AGENT
DEFAULT_SUBMISSION_STATUS: SubmissionStatus = SubmissionStatus.NEW
DEFAULT_SUBMISSION_SOURCE: SubmissionSource = SubmissionSource.WEBSITE_FORM
DEFAULT_WORKFLOW_STAGE: WorkflowStage = WorkflowStage.PENDING_VALIDATION
DEFAULT_CLIENT_STATUS: ClientStatus = ClientStatus.NEW
DEFAULT_DOCUMENT_STATUS: DocumentStatus = DocumentStatus.PENDING
DEFAULT_PAYMENT_STATUS: PaymentStatus = PaymentStatus.PENDING
DEFAULT_JOB_STATUS: JobStatus = JobStatus.PENDING

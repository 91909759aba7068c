"""Submission-related enums."""

from enum import Enum


class ServiceType(str, Enum):
    """Services an applicant can request."""

    US_LOTTERY = "us_lottery"
    CANADA_IMMIGRATION = "canada_immigration"
    WORK_VISA = "work_visa"
    STUDY_ABROAD = "study_abroad"
    FAMILY_REUNION = "family_reunion"
    FOOTBALL_TALENT = "football_talent"


class SubmissionStatus(str, Enum):
    """Applicant-facing status."""

    NEW = "new"
    VIEWED = "viewed"
    CONTACTED = "contacted"
    COMPLETED = "completed"


class SubmissionSource(str, Enum):
    WEBSITE_FORM = "website_form"
    WHATSAPP = "whatsapp"
    PHONE_CALL = "phone_call"
    EMAIL = "email"


class WorkflowStage(str, Enum):
    """Internal workflow stage, in order."""

    PENDING_VALIDATION = "pending_validation"
    VALIDATED = "validated"
    CALL_CONFIRMED = "call_confirmed"
    PAYMENT_REQUESTED = "payment_requested"
    PAYMENT_UPLOADED = "payment_uploaded"
    PAYMENT_CONFIRMED = "payment_confirmed"
    DOCUMENTS_REQUESTED = "documents_requested"
    DOCUMENTS_UPLOADED = "documents_uploaded"
    DOCUMENTS_VERIFIED = "documents_verified"
    CONVERTED_TO_CLIENT = "converted_to_client"


class WorkflowAction(str, Enum):
    """Named actions that move a submission between stages."""

    VALIDATE = "validate"
    CONFIRM_CALL = "confirm_call"
    REQUEST_PAYMENT = "request_payment"
    UPLOAD_RECEIPT = "upload_receipt"
    CONFIRM_PAYMENT = "confirm_payment"
    REJECT_PAYMENT = "reject_payment"
    REQUEST_DOCUMENTS = "request_documents"
    UPLOAD_DOCUMENTS = "upload_documents"
    VERIFY_DOCUMENTS = "verify_documents"
    REOPEN_DOCUMENTS = "reopen_documents"
    CONVERT = "convert"


class ClientStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

"""Notification-related enums."""

from enum import Enum


class NotificationType(str, Enum):
    """Types of in-app notifications."""

    # Submission workflow
    NEW_SUBMISSION = "new_submission"
    SUBMISSION_VALIDATED = "submission_validated"
    CALL_CONFIRMED = "call_confirmed"
    PAYMENT_RECEIPT_UPLOADED = "payment_receipt_uploaded"
    DOCUMENTS_REQUESTED = "documents_requested"
    DOCUMENTS_UPLOADED = "documents_uploaded"
    DOCUMENTS_VERIFIED = "documents_verified"
    CONVERTED_TO_CLIENT = "converted_to_client"

    # Clients
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"

"""Activity log enums."""

from enum import Enum


class ActivityAction(str, Enum):
    """Audited actions. Every mutating endpoint writes exactly one entry."""

    # Users
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_ACTIVATED = "user_activated"
    USER_DEACTIVATED = "user_deactivated"
    PASSWORD_CHANGED = "password_changed"
    PROFILE_UPDATED = "profile_updated"

    # Clients
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"
    CLIENT_VIEWED = "client_viewed"
    CLIENT_NOTE_ADDED = "client_note_added"

    # Submissions
    SUBMISSION_CREATED = "submission_created"
    SUBMISSION_UPDATED = "submission_updated"
    SUBMISSION_DELETED = "submission_deleted"
    SUBMISSION_VIEWED = "submission_viewed"
    SUBMISSION_VALIDATED = "submission_validated"
    SUBMISSION_CALL_CONFIRMED = "submission_call_confirmed"
    SUBMISSION_CONVERTED = "submission_converted"

    # Documents
    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_VERIFIED = "document_verified"
    DOCUMENT_REJECTED = "document_rejected"
    DOCUMENT_DELETED = "document_deleted"
    DOCUMENT_LINK_GENERATED = "document_link_generated"
    DOCUMENT_LINK_DEACTIVATED = "document_link_deactivated"

    # Payments
    PAYMENT_LINK_GENERATED = "payment_link_generated"
    PAYMENT_RECEIPT_UPLOADED = "payment_receipt_uploaded"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_REJECTED = "payment_rejected"
    PAYMENT_LINK_DEACTIVATED = "payment_link_deactivated"


class EntityType(str, Enum):
    """Entity types referenced by activity log entries."""

    USER = "User"
    CLIENT = "Client"
    SUBMISSION = "Submission"
    DOCUMENT = "Document"
    DOCUMENT_LINK = "DocumentLink"
    PAYMENT_LINK = "PaymentLink"
    SYSTEM = "System"

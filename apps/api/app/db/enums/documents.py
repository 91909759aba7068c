"""Document and access-link enums."""

from enum import Enum


class DocumentType(str, Enum):
    PASSPORT = "passport"
    NATIONAL_ID = "national_id"
    BIRTH_CERTIFICATE = "birth_certificate"
    DIPLOMA = "diploma"
    WORK_CONTRACT = "work_contract"
    BANK_STATEMENT = "bank_statement"
    PROOF_OF_ADDRESS = "proof_of_address"
    MARRIAGE_CERTIFICATE = "marriage_certificate"
    POLICE_CLEARANCE = "police_clearance"
    MEDICAL_REPORT = "medical_report"
    OTHER = "other"


class DocumentStatus(str, Enum):
    """Review status of an uploaded document."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    NEEDS_REPLACEMENT = "needs_replacement"


class StorageType(str, Enum):
    LOCAL = "local"
    S3 = "s3"


class PaymentStatus(str, Enum):
    """
    Payment link status.

    pending -> receipt_uploaded -> confirmed | rejected. Confirmed is terminal;
    a rejected link is deactivated and a new link must be generated.
    """

    PENDING = "pending"
    RECEIPT_UPLOADED = "receipt_uploaded"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"

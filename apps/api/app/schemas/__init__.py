"""Pydantic schemas for API request/response models."""

from app.schemas.activity import ActivityLogRead
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UserRead,
    UserSession,
)
from app.schemas.client import (
    ClientNoteCreate,
    ClientNoteRead,
    ClientRead,
    ClientStats,
    ClientUpdate,
)
from app.schemas.common import Envelope, MessageOnly, Page
from app.schemas.document import (
    DocumentLinkRead,
    DocumentLinkValidation,
    DocumentRead,
    GenerateDocumentLinkRequest,
    LinkApplicant,
    UploadResult,
    VerifyDocumentRequest,
)
from app.schemas.notification import NotificationRead, UnreadCount
from app.schemas.payment import (
    BankDetails,
    GeneratePaymentLinkRequest,
    PaymentLinkRead,
    PaymentLinkValidation,
    ReceiptRead,
    VerifyPaymentRequest,
)
from app.schemas.submission import (
    ConfirmCallRequest,
    DocumentStats,
    SubmissionCreate,
    SubmissionRead,
    SubmissionStats,
    SubmissionUpdate,
    TrackedSubmission,
    TrackRequest,
)
from app.schemas.user import UserCreate, UserUpdate

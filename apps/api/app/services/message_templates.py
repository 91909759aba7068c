"""Applicant-facing WhatsApp message templates (Arabic)."""

from app.core.config import settings

SIGNATURE = "Connect Job World 🌍"

STAGE_LABELS = {
    "pending_validation": "طلبك قيد المراجعة",
    "validated": "تم التحقق من طلبك بنجاح ✅",
    "call_confirmed": "تم تأكيد موعد الاتصال 📞",
    "documents_requested": "يرجى إرفاق المستندات المطلوبة 📄",
    "documents_uploaded": "تم استلام المستندات",
    "documents_verified": "تم التحقق من المستندات بنجاح ✅",
    "converted_to_client": "مبروك! تم قبول طلبك 🎉",
}


def _frontend(path: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}{path}"


def track_url() -> str:
    return _frontend("/track")


def upload_url(token: str) -> str:
    return _frontend(f"/upload/{token}")


def payment_url(token: str) -> str:
    return _frontend(f"/payment/{token}")


def _notes_block(label: str, notes: str | None) -> str:
    return f"{label}{notes}\n\n" if notes else ""


def new_submission(name: str, service: str) -> str:
    return (
        f"مرحباً {name}! 👋\n\n"
        f"شكراً لتقديم طلبك في خدمة: {service}\n\n"
        "تم استلام طلبك بنجاح وسيتم مراجعته من قبل فريقنا قريباً.\n"
        "سنتواصل معك خلال 24 ساعة.\n\n"
        "يمكنك تتبع حالة طلبك من خلال:\n"
        f"{track_url()}\n\n"
        f"{SIGNATURE}"
    )


def status_update(name: str, stage: str, custom_message: str | None = None) -> str:
    status_text = STAGE_LABELS.get(stage, "تم تحديث حالة طلبك")
    return (
        f"{name} العزيز،\n\n"
        f"{status_text}\n\n"
        f"{_notes_block('', custom_message)}"
        "تتبع طلبك:\n"
        f"{track_url()}\n\n"
        "للاستفسار: اتصل بنا\n"
        f"{SIGNATURE}"
    )


def payment_requested(
    name: str, amount: str, currency: str, token: str, expires_in_days: int, notes: str | None
) -> str:
    return (
        f"{name} العزيز،\n\n"
        "يرجى إتمام عملية الدفع لاستكمال طلبك.\n\n"
        f"المبلغ المطلوب: {amount} {currency}\n\n"
        "رابط الدفع:\n"
        f"{payment_url(token)}\n\n"
        f"{_notes_block('ملاحظات: ', notes)}"
        f"صلاحية الرابط: {expires_in_days} أيام\n\n"
        f"{SIGNATURE}"
    )


def payment_confirmed(name: str, amount: str, currency: str) -> str:
    return (
        f"{name} العزيز،\n\n"
        "تم تأكيد استلام الدفع الخاص بك بنجاح.\n\n"
        f"المبلغ: {amount} {currency}\n\n"
        "شكراً لك!\n\n"
        f"{SIGNATURE}"
    )


def payment_rejected(name: str, reason: str | None) -> str:
    return (
        f"{name} العزيز،\n\n"
        "نعتذر، لم نتمكن من التحقق من إيصال الدفع الخاص بك.\n\n"
        f"{_notes_block('السبب: ', reason)}"
        "يرجى التواصل معنا أو إعادة رفع الإيصال.\n\n"
        f"{SIGNATURE}"
    )


def documents_requested(
    name: str, token: str, expires_in_days: int, max_uploads: int, notes: str | None
) -> str:
    return (
        f"{name} العزيز،\n\n"
        "يرجى تحميل المستندات المطلوبة لاستكمال طلبك.\n\n"
        "رابط التحميل:\n"
        f"{upload_url(token)}\n\n"
        f"{_notes_block('ملاحظات: ', notes)}"
        f"صلاحية الرابط: {expires_in_days} أيام\n"
        f"الحد الأقصى للتحميلات: {max_uploads}\n\n"
        f"{SIGNATURE}"
    )


def document_verified(name: str, document_name: str) -> str:
    return (
        f"{name} العزيز،\n\n"
        f"تم التحقق من المستند: {document_name} ✅\n\n"
        "نحن نواصل معالجة طلبك. سنتواصل معك قريباً.\n\n"
        "تتبع طلبك:\n"
        f"{track_url()}\n\n"
        f"{SIGNATURE}"
    )


def welcome_client(name: str) -> str:
    return (
        f"مبروك {name}! 🎉\n\n"
        "تم قبول طلبك بنجاح وأصبحت الآن عميل لدى Connect Job World.\n\n"
        "سنبدأ العمل على ملفك فوراً لضمان نجاح رحلتك في الهجرة.\n\n"
        "فريقنا سيتواصل معك قريباً للخطوات القادمة.\n\n"
        "مرحباً بك في عائلة Connect Job World! 🌍✨"
    )

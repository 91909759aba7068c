"""Data normalization utilities for consistent data quality."""

import re
from typing import Optional


# Country codes recognised after a national "0" prefix (e.g. 0212..., 0033...)
ZERO_PREFIXED_COUNTRY_CODES = ("212", "962", "971", "966", "33", "1")

# Country codes assumed to already be present on bare digit strings
BARE_COUNTRY_CODES = ("212", "962", "971", "966", "20", "213", "216", "218", "33", "44", "1")

# Home country of the agency; bare national numbers are assumed to be Moroccan
HOME_COUNTRY_CODE = "212"

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")
_FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9_]")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Strip formatting from a phone number (spaces, dashes, parentheses).

    The number itself is stored as the applicant typed it; international
    formatting only happens when a message is sent.
    """
    if not phone:
        return None
    cleaned = _PHONE_SEPARATORS.sub("", phone.strip())
    return cleaned or None


def format_whatsapp_number(phone: Optional[str]) -> Optional[str]:
    """
    Format a phone number as a WhatsApp address (``whatsapp:+<E.164>``).

    Rules, in order:
    - ``+`` prefix: already international
    - ``00`` prefix: international dialing prefix, replaced by ``+``
    - ``0`` followed by a recognised country code: drop the ``0``
    - any other ``0`` prefix: domestic number, home country code added
    - bare digits starting with a known country code: ``+`` added
    - anything else: ``+`` added
    """
    cleaned = normalize_phone(phone)
    if not cleaned:
        return None

    if cleaned.startswith("+"):
        return f"whatsapp:{cleaned}"

    if cleaned.startswith("00"):
        return f"whatsapp:+{cleaned[2:]}"

    if cleaned.startswith("0"):
        without_zero = cleaned[1:]
        if without_zero.startswith(ZERO_PREFIXED_COUNTRY_CODES):
            return f"whatsapp:+{without_zero}"
        return f"whatsapp:+{HOME_COUNTRY_CODE}{without_zero}"

    if cleaned.startswith(BARE_COUNTRY_CODES):
        return f"whatsapp:+{cleaned}"

    return f"whatsapp:+{cleaned}"


def mask_phone(phone: Optional[str]) -> str:
    """Mask a phone number for logs, keeping the last 4 digits."""
    if not phone:
        return ""
    digits = re.sub(r"\D", "", phone)
    return f"***{digits[-4:]}" if digits else "***"


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower() or None


def normalize_name(name: Optional[str]) -> Optional[str]:
    """Strip whitespace and collapse multiple spaces."""
    if not name:
        return None
    return " ".join(name.split()) or None


def sanitize_filename_part(value: Optional[str], fallback: str = "Unknown") -> str:
    """
    Turn an applicant name into a filesystem-safe token.

    Spaces become underscores and anything outside ``[a-zA-Z0-9_]`` is
    dropped, so "Ali Ben-Salah" becomes "Ali_BenSalah". Names made only of
    non-Latin characters fall back to ``fallback``.
    """
    if not value:
        return fallback
    token = _FILENAME_UNSAFE.sub("", re.sub(r"\s+", "_", value.strip()))
    return token or fallback

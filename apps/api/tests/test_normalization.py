import pytest

from app.utils.normalization import (
    format_whatsapp_number,
    mask_phone,
    normalize_phone,
    sanitize_filename_part,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("+212 612-345-678", "whatsapp:+212612345678"),
        ("00212612345678", "whatsapp:+212612345678"),
        ("0212612345678", "whatsapp:+212612345678"),
        ("0033612345678", "whatsapp:+33612345678"),
        ("0612345678", "whatsapp:+212612345678"),
        ("(06) 12 34 56 78", "whatsapp:+212612345678"),
        ("212612345678", "whatsapp:+212612345678"),
        ("971501234567", "whatsapp:+971501234567"),
        ("5551234567", "whatsapp:+5551234567"),
    ],
)
def test_format_whatsapp_number(raw, expected):
    assert format_whatsapp_number(raw) == expected


def test_format_whatsapp_number_rejects_empty():
    assert format_whatsapp_number(None) is None
    assert format_whatsapp_number("  - ") is None


def test_normalize_phone_strips_separators_only():
    assert normalize_phone(" +212 (6) 12-34 ") == "+21261234"


def test_mask_phone_keeps_last_four_digits():
    assert mask_phone("+212 612 345 678") == "***5678"
    assert mask_phone(None) == ""


def test_sanitize_filename_part():
    assert sanitize_filename_part("Ali Ben-Salah") == "Ali_BenSalah"
    assert sanitize_filename_part("علي") == "Unknown"
    assert sanitize_filename_part(None) == "Unknown"

"""Utility modules."""

from app.utils.normalization import (
    format_whatsapp_number,
    mask_phone,
    normalize_email,
    normalize_name,
    normalize_phone,
    sanitize_filename_part,
)
from app.utils.pagination import (
    PaginationParams,
    get_pagination,
    paginate_query,
    pagination_meta,
)

__all__ = [
    # Normalization
    "format_whatsapp_number",
    "mask_phone",
    "normalize_email",
    "normalize_name",
    "normalize_phone",
    "sanitize_filename_part",
    # Pagination
    "PaginationParams",
    "get_pagination",
    "paginate_query",
    "pagination_meta",
]

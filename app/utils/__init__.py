"""Utility modules."""

from app.utils.normalization import (
    normalize_email,
    normalize_hospital_name,
    normalize_name,
    normalize_phone,
)
from app.utils.pagination import (
    PaginationParams,
    get_pagination,
)

__all__ = [
    # Normalization
    "normalize_email",
    "normalize_hospital_name",
    "normalize_name",
    "normalize_phone",
    # Pagination
    "PaginationParams",
    "get_pagination",
]

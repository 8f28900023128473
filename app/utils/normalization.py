"""Data normalization utilities for consistent data quality."""

import re
from typing import Optional


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize an Indian mobile number to E.164 format (+919876543210).

    Accepts:
    - 10 digits: 9876543210 → +919876543210
    - With trunk prefix: 09876543210 → +919876543210
    - With country code: 919876543210 / +91 98765 43210 → +919876543210

    Raises:
        ValueError: If phone is not a valid 10-digit mobile number
    """
    if not phone:
        return None

    digits = re.sub(r"\D", "", phone.strip())
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) == 10 and digits[0] in "6789":
        return f"+91{digits}"

    raise ValueError(f"Invalid phone number '{phone}'. Use a 10-digit mobile number.")


def normalize_email(email: Optional[str]) -> Optional[str]:
    """Lowercase and strip an email, None if empty."""
    if not email:
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    collapsed = " ".join(name.split())
    return collapsed or None


def normalize_hospital_name(name: Optional[str]) -> str:
    """Case- and whitespace-insensitive key for matching hospital names."""
    if not name:
        return ""
    return " ".join(name.split()).casefold()

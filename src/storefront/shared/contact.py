"""Contact detail checks shared by checkout and tracking."""

import re

BD_PHONE_PATTERN = r"^(?:\+88)?01[3-9]\d{8}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_PHONE = re.compile(BD_PHONE_PATTERN)
_EMAIL = re.compile(EMAIL_PATTERN)


def is_valid_phone(phone: str | None) -> bool:
    return bool(phone) and bool(_PHONE.match(phone.strip()))


def is_valid_email(email: str | None) -> bool:
    return bool(email) and bool(_EMAIL.match(email.strip()))


def same_email(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and left.strip().lower() == right.strip().lower()


def same_phone(left: str | None, right: str | None) -> bool:
    """Compare phone numbers ignoring the +88 country prefix."""
    if not left or not right:
        return False
    return _local(left) == _local(right)


def _local(phone: str) -> str:
    digits = re.sub(r"[^\d]", "", phone)
    return digits[2:] if digits.startswith("88") and len(digits) == 13 else digits

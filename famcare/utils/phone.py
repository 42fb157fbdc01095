"""
Phone number cleanup and display formatting for Brazilian numbers.

Numbers are stored as bare digits (area code + subscriber). Landlines have
ten digits and mobiles eleven.
"""
import re
from typing import Any, Optional

_PHONE_SEPARATORS = re.compile(r"[()\s\-]")


def clean_phone(value: Any) -> str:
    """Strip parentheses, whitespace and dashes from a phone number."""
    if value is None:
        return ""
    return _PHONE_SEPARATORS.sub("", str(value))


def format_phone(value: Optional[str]) -> str:
    """
    Format a phone number for display.

    - 10 digits: (00) 0000-0000
    - 11 digits: (00) 00000-0000

    Values with any other digit count are returned unchanged.
    """
    if not value:
        return ""
    digits = re.sub(r"\D", "", value)
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    return value

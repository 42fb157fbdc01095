"""
Date helpers for the day-first dates found in family registration sheets.

Registration sheets write dates as DD/MM/YYYY; the database stores ISO
``YYYY-MM-DD`` strings. Workbook cells holding real dates come back from
pandas as ``YYYY-MM-DD HH:MM:SS`` and are truncated to the date part.
"""
import logging
import re
from datetime import date, datetime
from typing import Optional, Union

logger = logging.getLogger(__name__)

_DAY_FIRST_PATTERN = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
_ISO_PREFIX_PATTERN = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})")


def to_iso_date(value: Optional[str]) -> str:
    """
    Convert a DD/MM/YYYY string to ISO YYYY-MM-DD.

    Empty input returns an empty string. Values that are already ISO (or an
    ISO timestamp) are reduced to their date part. Anything else is returned
    unchanged so the backend can reject it with its own message.
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""

    match = _DAY_FIRST_PATTERN.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    iso_match = _ISO_PREFIX_PATTERN.match(text)
    if iso_match:
        return iso_match.group(1)

    logger.debug("Leaving unrecognised date value '%s' as-is", text)
    return text


def parse_iso_date(value: Union[str, date, None]) -> Optional[date]:
    """Return a ``date`` for an ISO string (or date), or None when it cannot be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def compute_age(birth_date: Union[str, date, None], today: Optional[date] = None) -> Optional[int]:
    """
    Age in whole years on ``today``.

    Returns None when the birth date is missing, unreadable or in the future;
    callers fall back to a manually supplied age in that case.
    """
    born = parse_iso_date(birth_date)
    if born is None:
        return None

    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age if age >= 0 else None


def current_month_prefix(today: Optional[date] = None) -> str:
    """``YYYY-MM`` for the month containing ``today``."""
    today = today or date.today()
    return today.strftime("%Y-%m")

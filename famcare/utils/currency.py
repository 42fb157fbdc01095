"""
Currency helpers.

Income fields are typed by volunteers as bare digits interpreted as cents
("150" is 1,50) and stored as the formatted locale string ("R$ 1,50").
"""
import re
from typing import Any, Optional

from famcare.core.config import settings


def currency_to_cents(value: Any) -> int:
    """Strip every non-digit and read the rest as an amount in cents."""
    if value is None:
        return 0
    digits = re.sub(r"\D", "", str(value))
    return int(digits) if digits else 0


def format_cents(cents: int, symbol: Optional[str] = None) -> str:
    """Format an integer amount of cents as ``R$ 1.234,56``."""
    symbol = settings.currency_symbol if symbol is None else symbol
    sign = "-" if cents < 0 else ""
    whole, fraction = divmod(abs(cents), 100)
    grouped = f"{whole:,}".replace(",", ".")
    return f"{sign}{symbol} {grouped},{fraction:02d}"


def format_currency(value: Any, symbol: Optional[str] = None) -> str:
    """
    Format a stored or typed income value for persistence and display.

    Values that already carry the currency symbol are kept as they are.
    Empty and zero values become the zero amount, never an empty string.
    """
    symbol = settings.currency_symbol if symbol is None else symbol
    text = "" if value is None else str(value).strip()
    if symbol and symbol in text:
        return text
    return format_cents(currency_to_cents(text), symbol)

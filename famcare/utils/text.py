"""Small text normalisation helpers shared by the import pipeline."""
from typing import Any, Iterable, Optional

from famcare.core.config import settings


def clean_text(value: Any) -> str:
    """Return ``value`` as a stripped string; None and NaN-like blanks become ''."""
    if value is None:
        return ""
    text = str(value).strip()
    if text.lower() == "nan":
        return ""
    return text


def affirmative_tokens() -> Iterable[str]:
    return [token.strip().lower() for token in settings.affirmative_tokens.split(",") if token.strip()]


def parse_boolean(value: Any, tokens: Optional[Iterable[str]] = None) -> bool:
    """True only when the value matches an affirmative token ("sim"/"yes"), ignoring case."""
    text = clean_text(value).lower()
    if not text:
        return False
    return text in set(tokens or affirmative_tokens())


def parse_int(value: Any, default: int = 0) -> int:
    """
    Read a leading integer from a cell value.

    Workbook cells may come back as "3.0"; anything unreadable yields ``default``.
    """
    text = clean_text(value)
    if not text:
        return default
    try:
        return int(float(text.replace(",", ".")))
    except ValueError:
        return default

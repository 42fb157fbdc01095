"""
National identity document helpers (CPF and RG).
"""
import re
from typing import Any, Optional

_ID_SEPARATORS = re.compile(r"[.\-]")


def clean_identifier(value: Any) -> str:
    """Remove dot and dash separators from a CPF/RG-style identifier."""
    if value is None:
        return ""
    return _ID_SEPARATORS.sub("", str(value).strip())


def format_cpf(value: Optional[str]) -> str:
    """Format an 11 digit CPF as 000.000.000-00; other values are returned unchanged."""
    if not value:
        return ""
    digits = re.sub(r"\D", "", value)
    if len(digits) != 11:
        return value
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_rg(value: Optional[str]) -> str:
    """Format a 7 to 9 digit RG as 00.000.000-0; other values are returned unchanged."""
    if not value:
        return ""
    digits = re.sub(r"\D", "", value)
    if not 7 <= len(digits) <= 9:
        return value
    body, check = digits[:-1], digits[-1]
    groups = [body[:2]] + [body[i:i + 3] for i in range(2, len(body), 3)]
    return ".".join(groups) + f"-{check}"

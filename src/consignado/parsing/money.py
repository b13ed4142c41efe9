"""
pt-BR value helpers shared by every text-based extractor.
"""
import re
from typing import Optional

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")
_PLAIN_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?$", re.ASCII)
_MATRICULA = re.compile(r"^(\d{1,6})-(\d{1,3})$")


def parse_brl(text) -> Optional[float]:
    """
    Parses a Brazilian currency string to a float rounded to cents.

    Examples:
        "400,49"     -> 400.49
        '"1.234,56"' -> 1234.56
        "0,00"       -> 0.0
        "", "   ", "abc" -> None
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = _SURROUNDING_QUOTES.sub('', text.strip())
    if cleaned == '':
        return None

    cleaned = cleaned.replace('.', '').replace(',', '.')
    if not _PLAIN_NUMBER.match(cleaned):
        return None

    return round(float(cleaned), 2)


def cents_to_value(cents: int) -> float:
    """Integer minor units to a value rounded to cents."""
    return round(cents / 100, 2)


def canonical_matricula(text) -> Optional[str]:
    """
    Normalizes "<base>-<suffix>" by dropping leading zeros on both parts.

        "0085-01" -> "85-1"
    """
    if not isinstance(text, str):
        return None
    match = _MATRICULA.match(text.strip())
    if not match:
        return None
    return format_matricula(int(match.group(1)), int(match.group(2)))


def format_matricula(base: int, suffix: int) -> str:
    return f"{base}-{suffix}"

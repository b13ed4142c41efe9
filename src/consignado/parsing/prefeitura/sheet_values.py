"""
Cell-level helpers for spreadsheet grids.

Grids reach the extractor as rows of str | int | float | None; these
functions normalise raw cells and test them against the field shapes the
column classifier looks for.
"""
import math
import re
from datetime import date, datetime
from typing import Optional, Union

import pandas as pd

from ..money import canonical_matricula, parse_brl

Cell = Union[str, int, float, None]

_CPF_FORMATTED = re.compile(r"^\d{3}\.\d{3}\.\d{3}-\d{2}$")
_CPF_DIGITS = re.compile(r"^\d{11}$")
_MONETARY_TEXT = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}$")
_CURRENCY_PREFIX = re.compile(r"^R\$\s*")
_EVENTO_CODE = re.compile(r"^\d{1,3}$")
_NOME = re.compile(r"^[A-Za-zÀ-ÿ\s]+$")


def parse_sheet_value(cell) -> Cell:
    """
    Normalizes a raw cell coming from pandas/openpyxl.

    NaN/None -> None, integral floats -> int, strings stripped (empty -> None),
    dates -> ISO string.
    """
    if cell is None:
        return None
    if isinstance(cell, bool):
        return str(cell)
    if isinstance(cell, (datetime, date, pd.Timestamp)):
        if pd.isna(cell):
            return None
        return cell.isoformat()
    if isinstance(cell, (int, float)) or pd.api.types.is_number(cell):
        value = float(cell)
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    text = str(cell).strip()
    return text or None


def parse_cell_as_matricula(cell: Cell) -> Optional[str]:
    """'0085-01' -> '85-1'. Numbers are never matriculas."""
    if not isinstance(cell, str):
        return None
    return canonical_matricula(cell)


def cell_looks_cpf(cell: Cell) -> bool:
    """
    Formatted or 11-digit text, or an 11-digit whole number
    (read_excel hands digit-only CPF cells over as numbers).
    """
    if cell is None or isinstance(cell, bool):
        return False
    if isinstance(cell, float):
        if not math.isfinite(cell) or not cell.is_integer():
            return False
        cell = int(cell)
    if isinstance(cell, int):
        return cell > 0 and len(str(cell)) == 11
    if not isinstance(cell, str):
        return False
    text = cell.strip()
    return bool(_CPF_FORMATTED.match(text) or _CPF_DIGITS.match(text))


def parse_cell_as_monetary(cell: Cell) -> Optional[float]:
    """
    Reads a money cell: numeric cells as-is, text cells in pt-BR format
    ("1.234,56", "R$ 400,49"). CPF-looking cells are rejected.
    """
    if cell is None or isinstance(cell, bool) or cell_looks_cpf(cell):
        return None
    if isinstance(cell, (int, float)):
        if not math.isfinite(cell):
            return None
        return round(float(cell), 2)
    if not isinstance(cell, str):
        return None

    text = _CURRENCY_PREFIX.sub('', cell.strip())
    if not _MONETARY_TEXT.match(text):
        return None
    return parse_brl(text)


def cell_looks_evento(cell: Cell) -> bool:
    """Short numeric codes like 2, '002', '135'."""
    if cell is None:
        return False
    return bool(_EVENTO_CODE.match(str(cell).strip()))


def looks_like_nome_text(text: str, min_length: int = 5) -> bool:
    """Letters (accents included) and spaces only."""
    stripped = text.strip()
    return len(stripped) >= min_length and bool(_NOME.match(stripped))


def cell_looks_nome(cell: Cell) -> bool:
    """At least 5 chars, letters and spaces only, two words or more."""
    if not isinstance(cell, str):
        return False
    return ' ' in cell.strip() and looks_like_nome_text(cell)


def format_cpf(cell: Cell) -> Optional[str]:
    """Any cell with exactly 11 digits -> 'XXX.XXX.XXX-XX'."""
    if cell is None:
        return None
    digits = re.sub(r"\D", '', str(cell))
    if len(digits) != 11:
        return None
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"

"""
Regex patterns recognised in municipality reports.
"""
import re
from typing import Optional

MATRICULA_START = re.compile(r"^\s*(\d{1,6}-\d{1,3})\b")
MATRICULA_ANYWHERE = re.compile(r"\b(\d{1,6}-\d{1,3})\b")
MATRICULA_CSV_START = re.compile(r"^(\d{1,6}-\d{1,3}),")

VALOR_BR = re.compile(r"\b(\d{1,3}(?:\.\d{3})*,\d{2})\b")
VALOR_ENTRE_ASPAS = re.compile(r'"([\d.,]+)"')

CPF = re.compile(r"(\d{3}\.\d{3}\.\d{3}-\d{2})")

COMPETENCIA_SLASH = re.compile(r"\b(\d{2})/(\d{4})\b")
COMPETENCIA_COMPACT = re.compile(r"\b(0[1-9]|1[0-2])(\d{4})\b")


def detect_competencia(line: str) -> Optional[str]:
    """
    Finds a payroll period in a line, as MM/YYYY.
    Tries "01/2026" first, then the compact "012026".
    """
    match = COMPETENCIA_SLASH.search(line)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    match = COMPETENCIA_COMPACT.search(line)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    return None


def pad_evento(code) -> str:
    """'2' -> '002'"""
    return str(int(code)).zfill(3)

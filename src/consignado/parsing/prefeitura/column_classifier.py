"""
Sheet Column Classifier

Guesses which grid columns hold the matricula, the amount, the event code,
the worker name and the CPF, without relying on header text.

Heuristic:
- matricula: column with the most cells shaped like "85-1"
- valor: column with the largest SUM of money values, so a real amount
  column wins over a reference column full of 0,00
- evento / nome / cpf: optional, best remaining column above a threshold
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from consignado.common.logging_config import get_logger
from consignado.common.models import ConfidenceLevel
from ..config.settings import DEFAULT_SETTINGS, ExtractionSettings
from .sheet_values import (
    Cell,
    cell_looks_cpf,
    cell_looks_evento,
    cell_looks_nome,
    parse_cell_as_matricula,
    parse_cell_as_monetary,
)

logger = get_logger(__name__)

SCORE_COLUMNS = ['matricula', 'valor', 'valor_sum', 'evento', 'nome', 'cpf']


@dataclass(frozen=True)
class ColumnDetection:
    matricula_col: int
    valor_col: int
    confidence: ConfidenceLevel
    evento_col: Optional[int] = None
    nome_col: Optional[int] = None
    cpf_col: Optional[int] = None

    def to_dict(self):
        return {
            'matriculaCol': self.matricula_col,
            'valorCol': self.valor_col,
            'eventoCol': self.evento_col,
            'nomeCol': self.nome_col,
            'cpfCol': self.cpf_col,
            'confidence': self.confidence.value,
        }


def score_columns(grid: Sequence[Sequence[Cell]]) -> pd.DataFrame:
    """
    Builds the hit table in a single pass over every cell.

    Returns:
        DataFrame indexed by column number with one counter per signature
        (plus the summed money value in `valor_sum`).
    """
    max_cols = max((len(row) for row in grid), default=0)
    counts = {name: [0] * max_cols for name in SCORE_COLUMNS}
    counts['valor_sum'] = [0.0] * max_cols

    for row in grid:
        for col, cell in enumerate(row):
            if parse_cell_as_matricula(cell) is not None:
                counts['matricula'][col] += 1

            if cell_looks_cpf(cell):
                counts['cpf'][col] += 1

            if cell_looks_nome(cell):
                counts['nome'][col] += 1

            valor = parse_cell_as_monetary(cell)
            if valor is not None and valor >= 0:
                counts['valor'][col] += 1
                counts['valor_sum'][col] += valor

            if cell_looks_evento(cell):
                counts['evento'][col] += 1

    return pd.DataFrame(counts, columns=SCORE_COLUMNS, index=pd.RangeIndex(max_cols, name='col'))


def select_columns(scores: pd.DataFrame, total_rows: int,
                   settings: ExtractionSettings = DEFAULT_SETTINGS) -> Optional[ColumnDetection]:
    """
    Picks the column roles from a score table built by `score_columns`.
    Pure: the table is not modified.
    """
    if scores.empty or total_rows == 0:
        return None

    matricula_col = int(scores['matricula'].idxmax())
    matricula_count = int(scores.at[matricula_col, 'matricula'])
    if matricula_count == 0:
        return None

    optional_threshold = total_rows * settings.optional_column_ratio

    candidates = scores.drop(index=matricula_col)
    candidates = candidates[candidates['cpf'] / total_rows <= settings.optional_column_ratio]
    candidates = candidates[candidates['valor'] > 0]
    if candidates.empty:
        return None

    # stable sort: on a full tie the leftmost column wins
    candidates = candidates.sort_values(['valor_sum', 'valor'], ascending=False, kind='stable')
    valor_col = int(candidates.index[0])
    valor_count = int(candidates.at[valor_col, 'valor'])

    used = [matricula_col, valor_col]

    evento_col = _best_remaining(scores['evento'], used, minimum=0)
    if evento_col is not None:
        used.append(evento_col)

    nome_col = _best_remaining(scores['nome'], used, minimum=optional_threshold)
    if nome_col is not None:
        used.append(nome_col)

    cpf_col = _best_remaining(scores['cpf'], used, minimum=optional_threshold)

    matricula_ratio = matricula_count / total_rows
    valor_ratio = valor_count / total_rows

    if matricula_ratio >= settings.high_ratio and valor_ratio >= settings.high_ratio:
        confidence = ConfidenceLevel.HIGH
    elif matricula_ratio >= settings.medium_ratio and valor_ratio >= settings.medium_ratio:
        confidence = ConfidenceLevel.MEDIUM
    else:
        confidence = ConfidenceLevel.LOW

    return ColumnDetection(
        matricula_col=matricula_col,
        valor_col=valor_col,
        confidence=confidence,
        evento_col=evento_col,
        nome_col=nome_col,
        cpf_col=cpf_col,
    )


def _best_remaining(hits: pd.Series, used: List[int], minimum: float) -> Optional[int]:
    """Leftmost column with the most hits outside `used`, if above `minimum`."""
    remaining = hits.drop(index=used, errors='ignore')
    if remaining.empty:
        return None
    col = int(remaining.idxmax())
    if remaining.at[col] > minimum:
        return col
    return None


def detect_sheet_columns(grid: Sequence[Sequence[Cell]],
                         settings: ExtractionSettings = DEFAULT_SETTINGS) -> Optional[ColumnDetection]:
    """
    Detects the column roles of a grid.

    Returns:
        ColumnDetection, or None when no matricula or no amount column exists
    """
    if not grid:
        return None

    scores = score_columns(grid)
    detection = select_columns(scores, len(grid), settings)

    if detection is None:
        logger.warning("Column detection failed", rows=len(grid), columns=len(scores))
    else:
        logger.info("Columns detected", **detection.to_dict())

    return detection

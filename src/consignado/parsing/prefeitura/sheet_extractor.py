"""
Spreadsheet Extractor

Extracts rows from XLS/XLSX municipality reports. The workbook is
deserialized by pandas into one grid per sheet; everything after that works
on plain lists of cells.
"""
import json
from typing import Dict, List, Optional, Sequence

import pandas as pd

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.logging_config import get_logger
from consignado.common.models import (
    ConfidenceLevel,
    ExtracaoQualidade,
    ExtractionResult,
    NormalizedRow,
    RawRef,
    RowMeta,
    RowSource,
)
from ..base import BaseExtractor
from ..config.settings import DEFAULT_SETTINGS, ExtractionSettings
from ..patterns import detect_competencia, pad_evento
from .column_classifier import ColumnDetection, detect_sheet_columns
from .sheet_values import (
    Cell,
    cell_looks_evento,
    format_cpf,
    looks_like_nome_text,
    parse_cell_as_matricula,
    parse_cell_as_monetary,
    parse_sheet_value,
)

logger = get_logger(__name__)

FORMATO = 'xlsx_table_v1'

Grid = List[List[Cell]]


def dataframe_to_grid(df: pd.DataFrame) -> Grid:
    """Turns a header-less DataFrame into a list of normalized cell rows."""
    return [[parse_sheet_value(cell) for cell in row] for row in df.itertuples(index=False, name=None)]


def count_matricula_cells(grid: Sequence[Sequence[Cell]]) -> int:
    return sum(1 for row in grid for cell in row if parse_cell_as_matricula(cell) is not None)


def select_best_sheet(grids: Dict[str, Grid]) -> str:
    """
    Picks the sheet with the most matricula-looking cells.
    Falls back to the first sheet when none has any.
    """
    names = list(grids)
    best_name = names[0]
    best_count = 0
    for name in names:
        count = count_matricula_cells(grids[name])
        if count > best_count:
            best_name, best_count = name, count
    return best_name


def extract_competencia_from_cells(grid: Sequence[Sequence[Cell]]) -> Optional[str]:
    """First MM/YYYY (or MMYYYY) found in a text cell, row by row."""
    for row in grid:
        for cell in row:
            if isinstance(cell, str):
                competencia = detect_competencia(cell)
                if competencia:
                    return competencia
    return None


def determine_extracao(extracted_rows: int, ratio: float, confidence: ConfidenceLevel,
                       competencia: Optional[str],
                       settings: ExtractionSettings = DEFAULT_SETTINGS) -> ExtracaoQualidade:
    if extracted_rows == 0:
        return ExtracaoQualidade.FALHOU
    if ratio < settings.parcial_ratio or confidence is ConfidenceLevel.LOW or not competencia:
        return ExtracaoQualidade.PARCIAL
    return ExtracaoQualidade.COMPLETA


def extract_from_grid(grid: Sequence[Sequence[Cell]], sheet_name: Optional[str] = None,
                      ledger: Optional[DiagnosticsLedger] = None,
                      settings: ExtractionSettings = DEFAULT_SETTINGS) -> ExtractionResult:
    """
    Extracts normalized rows from one sheet grid.

    Args:
        grid: Rows of normalized cells (see parse_sheet_value)
        sheet_name: Name recorded in each row's raw_ref
        ledger: Ledger that may already hold acquisition diagnostics

    Returns:
        ExtractionResult with the extraction quality verdict
    """
    if ledger is None:
        ledger = DiagnosticsLedger(origin='prefeitura')

    def failed(message: str, **details) -> ExtractionResult:
        ledger.error('XLSX_ZERO_ROWS', message, **details)
        return ExtractionResult(rows=[], diagnostics=ledger.to_list(), formato=FORMATO,
                                extracao=ExtracaoQualidade.FALHOU)

    if len(grid) == 0:
        return failed("Planilha vazia ou sem dados")

    columns = detect_sheet_columns(grid, settings)
    if columns is None:
        return failed("Não foi possível detectar colunas de matrícula e valor")

    ledger.info('XLSX_COLUMNS_DETECTED', _columns_message(columns), **columns.to_dict())

    competencia = extract_competencia_from_cells(grid)
    if not competencia:
        ledger.warn('XLSX_COMPETENCIA_NOT_FOUND', "Competência não detectada na planilha")

    rows = []
    discarded = 0
    evento_atual = None

    for index, row in enumerate(grid):
        cells = list(row)

        if columns.evento_col is not None:
            evento_cell = _cell_at(cells, columns.evento_col)
            if cell_looks_evento(evento_cell):
                evento_atual = pad_evento(str(evento_cell).strip())

        matricula = parse_cell_as_matricula(_cell_at(cells, columns.matricula_col))
        if not matricula:
            discarded += 1
            continue

        valor = parse_cell_as_monetary(_cell_at(cells, columns.valor_col))
        if valor is None:
            discarded += 1
            continue

        nome = None
        if columns.nome_col is not None:
            nome_cell = _cell_at(cells, columns.nome_col)
            if isinstance(nome_cell, str) and _looks_short_nome(nome_cell):
                nome = nome_cell.strip()

        cpf = None
        if columns.cpf_col is not None:
            cpf = format_cpf(_cell_at(cells, columns.cpf_col))

        rows.append(NormalizedRow(
            source=RowSource.PREFEITURA,
            matricula=matricula,
            valor=valor,
            nome=nome,
            cpf=cpf,
            meta=RowMeta(
                competencia=competencia,
                evento=evento_atual,
                confidence=columns.confidence,
            ),
            raw_ref=RawRef(
                line_no=index + 1,
                sheet=sheet_name,
                raw=json.dumps(cells, ensure_ascii=False, default=str)[:500],
            ),
        ))

    if evento_atual is None and rows:
        ledger.warn('XLSX_EVENT_NOT_FOUND', "Evento não detectado na planilha")

    if not rows:
        return failed("Nenhuma linha com matrícula e valor foi extraída",
                      totalRows=len(grid), discarded=discarded)

    ledger.info(
        'XLSX_PARSE_SUMMARY',
        f"Extraídas {len(rows)} linhas de {len(grid)} totais",
        totalRows=len(grid),
        extractedRows=len(rows),
        discarded=discarded,
        competencia=competencia,
    )

    extracao = determine_extracao(len(rows), len(rows) / len(grid), columns.confidence, competencia, settings)

    logger.info("Sheet extracted", sheet=sheet_name, rows=len(rows), discarded=discarded, extracao=extracao.value)

    return ExtractionResult(
        rows=rows,
        diagnostics=ledger.to_list(),
        competencia=competencia,
        formato=FORMATO,
        extracao=extracao,
    )


def _cell_at(cells: List[Cell], col: int) -> Cell:
    return cells[col] if col < len(cells) else None


def _looks_short_nome(text: str) -> bool:
    return looks_like_nome_text(text, min_length=3)


def _columns_message(columns: ColumnDetection) -> str:
    message = f"Colunas: matrícula={columns.matricula_col}, valor={columns.valor_col}"
    if columns.nome_col is not None:
        message += f", nome={columns.nome_col}"
    if columns.cpf_col is not None:
        message += f", cpf={columns.cpf_col}"
    return message


class SheetExtractor(BaseExtractor):
    """
    Reads a workbook with pandas, picks the sheet that looks like data and
    hands its grid to extract_from_grid.
    """

    formato = FORMATO

    def load_grids(self, file_path_or_buffer) -> Dict[str, Grid]:
        """
        Deserializes every sheet into a grid. Reading is delegated to pandas
        (openpyxl for xlsx/xlsm, xlrd for xls).
        """
        sheets = pd.read_excel(file_path_or_buffer, sheet_name=None, header=None, dtype=object)
        return {str(name): dataframe_to_grid(df) for name, df in sheets.items()}

    def extract(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        ledger = DiagnosticsLedger(origin='prefeitura')

        try:
            grids = self.load_grids(file_path_or_buffer)
        except Exception as e:
            logger.error(f"Spreadsheet read error: {e}", exc_info=True, filename=filename)
            ledger.error('XLSX_READ_ERROR', f"Erro ao ler planilha: {e}", error_type=type(e).__name__)
            return ExtractionResult(rows=[], diagnostics=ledger.to_list(), formato=self.formato,
                                    extracao=ExtracaoQualidade.FALHOU)

        if not grids:
            return extract_from_grid([], None, ledger, self.settings)

        return self.extract_from_grids(grids, ledger)

    def extract_from_grids(self, grids: Dict[str, Grid], ledger: Optional[DiagnosticsLedger] = None) -> ExtractionResult:
        if ledger is None:
            ledger = DiagnosticsLedger(origin='prefeitura')
        sheet_name = select_best_sheet(grids)
        ledger.info(
            'XLSX_SHEET_SELECTED',
            f"Aba selecionada: \"{sheet_name}\"",
            sheetName=sheet_name,
            totalSheets=len(grids),
        )
        return extract_from_grid(grids[sheet_name], sheet_name, ledger, self.settings)

"""
Unit tests for the spreadsheet extractor.

Workbook reading is mocked at pandas.read_excel; the rest runs on real grids.
"""
from unittest.mock import patch

import pandas as pd
import pytest

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.models import ConfidenceLevel, ExtracaoQualidade, Severity
from consignado.parsing.prefeitura.sheet_extractor import (
    SheetExtractor,
    dataframe_to_grid,
    determine_extracao,
    extract_competencia_from_cells,
    extract_from_grid,
    select_best_sheet,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def grid():
    header = [
        ['PREFEITURA MUNICIPAL', None, None, None, None, None],
        ['Competência 01/2026', None, None, None, None, None],
    ]
    data = [
        ['2', 'FULANO DE TAL', f'{85 + i}-1', '00028139399', '0,00', f'{100 + i},50']
        for i in range(8)
    ]
    return header + data


@pytest.fixture
def workbook(grid):
    """What pandas.read_excel(sheet_name=None, header=None) hands back."""
    return {
        'Capa': pd.DataFrame([['Relatório de consignados'], [None]], dtype=object),
        'Dados': pd.DataFrame(grid, dtype=object),
    }


@pytest.fixture
def extractor():
    return SheetExtractor()


# =============================================================================
# TEST: helpers
# =============================================================================

class TestHelpers:

    def test_dataframe_to_grid_normalizes(self):
        df = pd.DataFrame([['85-1', 400.49, float('nan'), 3.0]], dtype=object)
        assert dataframe_to_grid(df) == [['85-1', 400.49, None, 3]]

    def test_select_best_sheet(self, grid):
        grids = {'Capa': [['titulo']], 'Dados': grid}
        assert select_best_sheet(grids) == 'Dados'

    def test_select_first_sheet_when_none_match(self):
        assert select_best_sheet({'A': [['x']], 'B': [['y']]}) == 'A'

    def test_competencia_first_match(self, grid):
        assert extract_competencia_from_cells(grid) == '01/2026'

    def test_competencia_ignores_numbers(self):
        assert extract_competencia_from_cells([[12026, None]]) is None

    @pytest.mark.parametrize("rows,ratio,confidence,competencia,expected", [
        (0, 0.0, ConfidenceLevel.HIGH, '01/2026', ExtracaoQualidade.FALHOU),
        (8, 0.8, ConfidenceLevel.HIGH, '01/2026', ExtracaoQualidade.COMPLETA),
        (4, 0.4, ConfidenceLevel.HIGH, '01/2026', ExtracaoQualidade.PARCIAL),
        (8, 0.8, ConfidenceLevel.LOW, '01/2026', ExtracaoQualidade.PARCIAL),
        (8, 0.8, ConfidenceLevel.HIGH, None, ExtracaoQualidade.PARCIAL),
    ])
    def test_determine_extracao(self, rows, ratio, confidence, competencia, expected):
        assert determine_extracao(rows, ratio, confidence, competencia) is expected


# =============================================================================
# TEST: extract_from_grid
# =============================================================================

class TestExtractFromGrid:

    def test_rows(self, grid):
        result = extract_from_grid(grid, 'Dados')
        assert len(result.rows) == 8
        first = result.rows[0]
        assert first.matricula == '85-1'
        assert first.valor == 100.5
        assert first.nome == 'FULANO DE TAL'
        assert first.cpf == '000.281.393-99'
        assert first.meta.evento == '002'
        assert first.meta.competencia == '01/2026'
        assert first.meta.confidence is ConfidenceLevel.HIGH

    def test_raw_ref(self, grid):
        row = extract_from_grid(grid, 'Dados').rows[0]
        assert row.raw_ref.sheet == 'Dados'
        assert row.raw_ref.line_no == 3
        assert '85-1' in row.raw_ref.raw

    def test_verdict_and_formato(self, grid):
        result = extract_from_grid(grid, 'Dados')
        assert result.formato == 'xlsx_table_v1'
        assert result.extracao is ExtracaoQualidade.COMPLETA

    def test_summary(self, grid):
        result = extract_from_grid(grid, 'Dados')
        summary = result.diagnostics_by_code('XLSX_PARSE_SUMMARY')[0]
        assert summary.details['extractedRows'] == 8
        assert summary.details['discarded'] == 2
        assert result.diagnostics_by_code('XLSX_COLUMNS_DETECTED')[0].details['valorCol'] == 5

    def test_missing_competencia_and_evento(self, grid):
        trimmed = [row[1:] for row in grid[2:]]
        result = extract_from_grid(trimmed)
        assert result.diagnostics_by_code('XLSX_COMPETENCIA_NOT_FOUND')[0].severity is Severity.WARN
        assert result.diagnostics_by_code('XLSX_EVENT_NOT_FOUND')[0].severity is Severity.WARN
        assert result.extracao is ExtracaoQualidade.PARCIAL

    def test_empty_grid(self):
        result = extract_from_grid([])
        assert result.diagnostics_by_code('XLSX_ZERO_ROWS')[0].severity is Severity.ERROR
        assert result.extracao is ExtracaoQualidade.FALHOU

    def test_undetectable_columns(self):
        result = extract_from_grid([['a', 'b'], ['c', 'd']])
        assert len(result.diagnostics_by_code('XLSX_ZERO_ROWS')) == 1
        assert result.rows == []
        assert result.extracao is ExtracaoQualidade.FALHOU

    def test_short_name_rejected(self, grid):
        grid[2][1] = 'AB'
        assert extract_from_grid(grid).rows[0].nome is None

    def test_numeric_cpf_cells(self, grid):
        for i, row in enumerate(grid[2:]):
            row[3] = 28139399000 + i
        result = extract_from_grid(grid, 'Dados')
        assert result.rows[0].valor == 100.5
        assert result.rows[0].cpf == '281.393.990-00'

    def test_empty_caller_ledger_is_used(self, grid):
        ledger = DiagnosticsLedger(origin='prefeitura')
        result = extract_from_grid(grid, 'Dados', ledger)
        assert len(ledger) == len(result.diagnostics) > 0


# =============================================================================
# TEST: SheetExtractor
# =============================================================================

class TestSheetExtractor:

    def test_selects_data_sheet(self, extractor, workbook):
        with patch('consignado.parsing.prefeitura.sheet_extractor.pd.read_excel', return_value=workbook) as mock_read:
            result = extractor.extract('relatorio.xlsx')

        mock_read.assert_called_once_with('relatorio.xlsx', sheet_name=None, header=None, dtype=object)
        selected = result.diagnostics_by_code('XLSX_SHEET_SELECTED')[0]
        assert selected.details['sheetName'] == 'Dados'
        assert selected.details['totalSheets'] == 2
        assert result.diagnostics[0].code == 'XLSX_SHEET_SELECTED'
        assert len(result.rows) == 8

    def test_read_error(self, extractor):
        with patch('consignado.parsing.prefeitura.sheet_extractor.pd.read_excel',
                   side_effect=ValueError("Excel file format cannot be determined")):
            result = extractor.extract('quebrado.xlsx')

        error = result.diagnostics_by_code('XLSX_READ_ERROR')[0]
        assert error.severity is Severity.ERROR
        assert error.details['error_type'] == 'ValueError'
        assert result.extracao is ExtracaoQualidade.FALHOU
        assert result.rows == []

    def test_workbook_without_sheets(self, extractor):
        with patch('consignado.parsing.prefeitura.sheet_extractor.pd.read_excel', return_value={}):
            result = extractor.extract('vazio.xlsx')
        assert len(result.diagnostics_by_code('XLSX_ZERO_ROWS')) == 1

    def test_grids_use_empty_caller_ledger(self, extractor, grid):
        ledger = DiagnosticsLedger(origin='prefeitura')
        result = extractor.extract_from_grids({'Dados': grid}, ledger)
        assert ledger.has_code('XLSX_SHEET_SELECTED')
        assert len(ledger) == len(result.diagnostics)

"""
Unit tests for the "Relação de Trabalhadores por Evento" CSV extractor.
"""
import pytest

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.models import ConfidenceLevel, ExtracaoQualidade, RowSource, Severity
from consignado.parsing.prefeitura.csv_report import extract_from_csv_report

CSV_SINTETICO = """
,,PREFEITURA MUNICIPAL DE TESTE,,,,,,,,,,Mês/Ano,
,,"RUA TESTE, 123",,,,,,,,,,,01/2026
,,CNPJ: 00.000.000/0001-00,,,,,,,,,,Folha Mensal,
Relação de Trabalhadores por Evento ,,,,,,,,,,,,,
Matrícula,Nome do Trabalhador,,,,,,,Referência,,Qtde.,,Valor,
Evento:  002 - CONSIGNADO BB,,,,,,,,,,,,,
85-1,REGINALDO RODRIGUES,,,,,,000.281.393-99,,1/0,"0,00",,"400,49",
85-1,REGINALDO RODRIGUES,,,,,,000.281.393-99,,1/0,"0,00",,"26,83",
Evento:  015 - CONSIGNADO CEF,,,,,,,,,,,,,
99-1,MARIA WILLANA,,,,,,000.709.903-79,,1/0,"0,00",,"1.234,56",
"""


@pytest.fixture
def result():
    return extract_from_csv_report(CSV_SINTETICO)


class TestBasicExtraction:

    def test_row_count(self, result):
        assert len(result.rows) == 3

    def test_matriculas(self, result):
        assert [r.matricula for r in result.rows] == ['85-1', '85-1', '99-1']

    def test_last_quoted_value_wins(self, result):
        """Test that the final quoted amount is used, not the 0,00 reference."""
        assert [r.valor for r in result.rows] == [400.49, 26.83, 1234.56]

    def test_source_and_confidence(self, result):
        assert result.rows[0].source is RowSource.PREFEITURA
        assert result.rows[0].meta.confidence is ConfidenceLevel.HIGH

    def test_formato_and_verdict(self, result):
        assert result.formato == 'csv_report_v1'
        assert result.extracao is ExtracaoQualidade.COMPLETA

    def test_raw_ref_keeps_line(self, result):
        assert 'REGINALDO' in result.rows[0].raw_ref.raw
        assert result.rows[0].raw_ref.line_no == 8


class TestCompetenciaAndEvento:

    def test_competencia_from_header(self, result):
        assert result.competencia == '01/2026'
        assert result.rows[0].meta.competencia == '01/2026'

    def test_evento_per_section(self, result):
        assert [r.meta.evento for r in result.rows] == ['002', '002', '015']

    def test_compact_competencia(self):
        csv = 'Competência: 012026\n85-1,TESTE,,,,,"100,00",'
        assert extract_from_csv_report(csv).competencia == '01/2026'

    def test_missing_competencia_is_parcial(self):
        csv = 'Evento: 002\n85-1,TESTE,,,,,"100,00",'
        result = extract_from_csv_report(csv)
        assert result.competencia is None
        assert result.extracao is ExtracaoQualidade.PARCIAL


class TestDiagnostics:

    def test_summary(self, result):
        summary = result.diagnostics_by_code('prefeitura_csv_v1_summary')[0]
        assert summary.severity is Severity.INFO
        assert summary.details['eventosVistosCount'] == 2
        assert summary.details['eventosVistos'] == ['002', '015']
        assert summary.details['extractedRows'] == 3
        assert summary.details['dataLinesDetected'] == 3

    def test_nothing_extracted(self):
        result = extract_from_csv_report('linha sem dados\noutra linha\n')
        failed = result.diagnostics_by_code('prefeitura_extraction_failed')
        assert len(failed) == 1
        assert failed[0].severity is Severity.ERROR
        assert result.diagnostics_by_code('prefeitura_csv_v1_summary')[0].severity is Severity.ERROR
        assert result.extracao is ExtracaoQualidade.FALHOU

    def test_line_without_quoted_value_is_discarded(self):
        csv = '01/2026\nEvento: 002\n85-1,TESTE,sem valor\n99-1,OK,,,"50,00",'
        result = extract_from_csv_report(csv)
        assert [r.matricula for r in result.rows] == ['99-1']
        summary = result.diagnostics_by_code('prefeitura_csv_v1_summary')[0]
        assert summary.details['discardedNoValue'] == 1

    def test_summary_counters(self, result):
        summary = result.diagnostics_by_code('prefeitura_csv_v1_summary')[0]
        assert set(summary.details) == {
            'totalLines', 'dataLinesDetected', 'extractedRows', 'discardedNoValue',
            'competenciaFound', 'eventosVistosCount', 'eventosVistos',
        }

    def test_leading_zeros_are_canonicalized(self):
        result = extract_from_csv_report('01/2026\n0085-01,TESTE,"10,00",')
        assert result.rows[0].matricula == '85-1'

    def test_existing_ledger_items_come_first(self):
        ledger = DiagnosticsLedger(origin='prefeitura')
        ledger.info('PREFEITURA_ENCODING_FALLBACK', "fallback", invalidChars=12)
        result = extract_from_csv_report(CSV_SINTETICO, ledger)
        assert result.diagnostics[0].code == 'PREFEITURA_ENCODING_FALLBACK'

    def test_empty_caller_ledger_is_used(self):
        ledger = DiagnosticsLedger(origin='prefeitura')
        result = extract_from_csv_report(CSV_SINTETICO, ledger)
        assert ledger.has_code('prefeitura_csv_v1_summary')
        assert len(ledger) == len(result.diagnostics)

"""
Unit tests for the municipality dispatcher.

pdfplumber and the spreadsheet reader are mocked; CSV and TXT run for real.
"""
from unittest.mock import MagicMock, patch

import pytest

from consignado.common.models import ExtracaoQualidade, ExtractionResult, Severity
from consignado.parsing.prefeitura.extractor import SUPPORTED_FORMATS, PrefeituraExtractor, get_extension

CSV_REPORT = '01/2026\nEvento: 002 - CONSIGNADO BB\n85-1,REGINALDO,,"0,00",,"400,49",\n'
TEXT_REPORT = 'Mês/Ano: 01/2026\nEvento: 002\n85-1 REGINALDO RODRIGUES 400,49\n'


@pytest.fixture
def extractor():
    return PrefeituraExtractor()


def mock_pdf(pages_text):
    pdf = MagicMock()
    pdf.pages = [MagicMock(**{'extract_text.return_value': text}) for text in pages_text]
    pdf.__enter__.return_value = pdf
    return pdf


class TestGetExtension:

    @pytest.mark.parametrize("filename,expected", [
        ("relatorio.CSV", "csv"),
        ("folha.jan.xlsx", "xlsx"),
        ("semextensao", ""),
        (None, ""),
        ("/tmp/dados/relatorio.pdf", "pdf"),
    ])
    def test_extension(self, filename, expected):
        assert get_extension(filename) == expected


class TestDispatch:

    def test_csv(self, extractor):
        result = extractor.extract(CSV_REPORT.encode('utf-8'), filename='relatorio.csv')
        assert result.formato == 'csv_report_v1'
        assert result.rows[0].valor == 400.49
        assert result.extracao is ExtracaoQualidade.COMPLETA

    def test_csv_from_path(self, extractor, tmp_path):
        path = tmp_path / 'relatorio.csv'
        path.write_text(CSV_REPORT, encoding='utf-8')
        assert len(extractor.extract(str(path)).rows) == 1

    def test_txt(self, extractor):
        result = extractor.extract(TEXT_REPORT.encode('utf-8'), filename='relatorio.txt')
        assert result.formato == 'text_report_v1'
        assert result.rows[0].matricula == '85-1'

    def test_spreadsheet_delegates(self, extractor):
        expected = ExtractionResult(rows=[], diagnostics=[], formato='xlsx_table_v1')
        with patch('consignado.parsing.prefeitura.extractor.SheetExtractor') as mock_cls:
            mock_cls.return_value.extract.return_value = expected
            result = extractor.extract(b'PK\x03\x04', filename='folha.xlsx')

        assert result is expected
        source = mock_cls.return_value.extract.call_args[0][0]
        assert source.read() == b'PK\x03\x04'

    def test_unsupported(self, extractor):
        result = extractor.extract(b'...', filename='relatorio.docx')
        assert result.formato == 'unknown'
        assert result.extracao is ExtracaoQualidade.FALHOU
        diag = result.diagnostics_by_code('prefeitura_unsupported_format')[0]
        assert diag.severity is Severity.ERROR
        assert diag.details['extension'] == 'docx'
        assert diag.details['supportedFormats'] == SUPPORTED_FORMATS
        assert '.docx' in diag.message

    def test_no_extension(self, extractor):
        result = extractor.extract(b'...', filename='relatorio')
        assert '(sem extensão)' in result.diagnostics[0].message


class TestEncoding:

    def test_latin1_fallback(self, extractor):
        text = 'Relação ' + 'ção ' * 10 + '\n' + CSV_REPORT
        result = extractor.extract(text.encode('latin-1'), filename='relatorio.csv')

        fallback = result.diagnostics[0]
        assert fallback.code == 'PREFEITURA_ENCODING_FALLBACK'
        assert fallback.severity is Severity.INFO
        assert len(result.rows) == 1

    def test_valid_utf8_no_fallback(self, extractor):
        result = extractor.extract(('Relação ' * 20 + '\n' + CSV_REPORT).encode('utf-8'), filename='r.csv')
        assert result.diagnostics_by_code('PREFEITURA_ENCODING_FALLBACK') == []


class TestPdf:

    def test_pages_joined(self, extractor):
        pdf = mock_pdf(['Mês/Ano: 01/2026\nEvento: 002', '85-1 REGINALDO RODRIGUES 400,49', None])
        with patch('consignado.parsing.prefeitura.extractor.pdfplumber.open', return_value=pdf):
            result = extractor.extract(b'%PDF-1.4', filename='relatorio.pdf')

        assert result.formato == 'text_report_v1'
        assert len(result.rows) == 1
        assert result.rows[0].meta.evento == '002'
        assert result.competencia == '01/2026'

    def test_unreadable_pdf(self, extractor):
        with patch('consignado.parsing.prefeitura.extractor.pdfplumber.open', side_effect=ValueError("broken")):
            result = extractor.extract(b'not a pdf', filename='relatorio.pdf')

        failed = result.diagnostics_by_code('prefeitura_extraction_failed')[0]
        assert failed.severity is Severity.ERROR
        assert failed.details['error_type'] == 'ValueError'
        assert result.extracao is ExtracaoQualidade.FALHOU

"""
Municipality Extractor

Chooses the municipality-side extractor by file extension:
- .csv                -> CSV report
- .xls, .xlsx, .xlsm  -> spreadsheet
- .txt                -> text report
- .pdf                -> pdfplumber text layer, then text report
"""
import io
import os
from typing import Optional

import pdfplumber

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.logging_config import get_logger
from consignado.common.models import ExtracaoQualidade, ExtractionResult
from ..base import BaseExtractor
from .csv_report import extract_from_csv_report
from .sheet_extractor import SheetExtractor
from .text_report import parse_text_report

logger = get_logger(__name__)

SPREADSHEET_EXTENSIONS = ('xls', 'xlsx', 'xlsm')
SUPPORTED_FORMATS = ['csv', *SPREADSHEET_EXTENSIONS, 'txt', 'pdf']


def get_extension(filename: Optional[str]) -> str:
    """Lower-case extension without the dot ('' when there is none)."""
    if not filename:
        return ''
    return os.path.splitext(filename)[1].lstrip('.').lower()


class PrefeituraExtractor(BaseExtractor):
    """
    Extracts municipality rows from any supported report format.

    The file name decides the format; content is never sniffed.
    """

    ENCODING_FALLBACK_CODE = 'PREFEITURA_ENCODING_FALLBACK'

    def extract(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        """
        Args:
            file_path_or_buffer: Path, bytes or binary buffer
            filename: Uploaded file name (defaults to the path when a path is given)

        Returns:
            ExtractionResult; unsupported formats give formato 'unknown' and 'falhou'
        """
        if filename is None and isinstance(file_path_or_buffer, str):
            filename = file_path_or_buffer
        extension = get_extension(filename)

        logger.info(f"Extracting municipality file {filename}", extension=extension)

        if extension in SPREADSHEET_EXTENSIONS:
            source = file_path_or_buffer
            if isinstance(source, (bytes, bytearray)):
                source = io.BytesIO(source)
            return SheetExtractor(self.settings).extract(source, filename)

        ledger = DiagnosticsLedger(origin='prefeitura')

        if extension == 'csv':
            text = self.decode_text(self.read_bytes(file_path_or_buffer), ledger, self.ENCODING_FALLBACK_CODE)
            return extract_from_csv_report(text, ledger)

        if extension == 'txt':
            text = self.decode_text(self.read_bytes(file_path_or_buffer), ledger, self.ENCODING_FALLBACK_CODE)
            return parse_text_report(text, ledger)

        if extension == 'pdf':
            return self.extract_pdf(file_path_or_buffer, filename, ledger)

        ledger.error(
            'prefeitura_unsupported_format',
            f"Formato de arquivo não suportado: .{extension or '(sem extensão)'}",
            fileName=filename,
            extension=extension,
            supportedFormats=SUPPORTED_FORMATS,
        )
        return ExtractionResult(rows=[], diagnostics=ledger.to_list(), formato='unknown',
                                extracao=ExtracaoQualidade.FALHOU)

    def read_pdf_text(self, file_path_or_buffer) -> str:
        """Joins the text layer of every page with newlines."""
        source = file_path_or_buffer
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)

        with pdfplumber.open(source) as pdf:
            return '\n'.join(page.extract_text() or '' for page in pdf.pages)

    def extract_pdf(self, file_path_or_buffer, filename: Optional[str],
                    ledger: DiagnosticsLedger) -> ExtractionResult:
        try:
            text = self.read_pdf_text(file_path_or_buffer)
        except Exception as e:
            logger.error(f"PDF read error: {e}", exc_info=True, filename=filename)
            ledger.error(
                'prefeitura_extraction_failed',
                f"Erro ao ler PDF: {e}",
                fileName=filename,
                error_type=type(e).__name__,
            )
            return ExtractionResult(rows=[], diagnostics=ledger.to_list(), formato='text_report_v1',
                                    extracao=ExtracaoQualidade.FALHOU)

        return parse_text_report(text, ledger)

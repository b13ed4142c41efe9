"""
Base Classes for Parsing Module

Every top-level extractor takes a file (path, bytes or binary buffer)
and returns an ExtractionResult.
"""
from abc import ABC, abstractmethod
from typing import Optional

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.logging_config import get_logger
from consignado.common.models import ExtracaoQualidade, ExtractionResult
from .config.settings import DEFAULT_SETTINGS, ExtractionSettings

logger = get_logger(__name__)

REPLACEMENT_CHAR = '\ufffd'


class BaseExtractor(ABC):
    """
    Abstract Base Class for all extractors.

    Subclasses set `formato` and implement `extract`.
    """

    formato = 'unknown'

    def __init__(self, settings: Optional[ExtractionSettings] = None):
        self.settings = settings or DEFAULT_SETTINGS

    @abstractmethod
    def extract(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        """
        Main entry point.
        Must be implemented by subclasses.
        """
        raise NotImplementedError

    def read_bytes(self, file_path_or_buffer) -> bytes:
        """Accepts a filesystem path, raw bytes or a file-like object."""
        if isinstance(file_path_or_buffer, (bytes, bytearray)):
            return bytes(file_path_or_buffer)

        if isinstance(file_path_or_buffer, str):
            with open(file_path_or_buffer, 'rb') as f:
                return f.read()

        if hasattr(file_path_or_buffer, 'seek'):
            file_path_or_buffer.seek(0)
        raw = file_path_or_buffer.read()
        if isinstance(raw, str):
            raw = raw.encode('utf-8')
        return raw

    def decode_text(self, raw: bytes, ledger: DiagnosticsLedger, fallback_code: str) -> str:
        """
        Decodes as UTF-8; if too many replacement characters show up the
        file is assumed to be Latin-1 and decoded again.
        """
        content = raw.decode('utf-8', errors='replace')
        invalid_chars = content.count(REPLACEMENT_CHAR)

        if invalid_chars > self.settings.encoding_fallback_threshold:
            ledger.info(
                fallback_code,
                f"Detectados {invalid_chars} caracteres inválidos em UTF-8, tentando Latin1",
                invalidChars=invalid_chars,
            )
            content = raw.decode('latin-1')

        return content


def determine_text_extracao(row_count: int, competencia: Optional[str], ledger: DiagnosticsLedger,
                            degrading_codes=()) -> ExtracaoQualidade:
    """
    Quality verdict for line-oriented reports (bank TXT, CSV, text).

    falhou without rows; parcial without competence or when any of
    `degrading_codes` was reported; completa otherwise.
    """
    if row_count == 0:
        return ExtracaoQualidade.FALHOU
    if not competencia or any(ledger.has_code(code) for code in degrading_codes):
        return ExtracaoQualidade.PARCIAL
    return ExtracaoQualidade.COMPLETA

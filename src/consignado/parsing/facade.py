from typing import Optional

from consignado.common.logging_config import get_logger
from consignado.common.models import ExtractionResult, RowSource
from .banks import PARSERS
from .config.settings import DEFAULT_SETTINGS, ExtractionSettings
from .exceptions import UnsupportedFormatError
from .prefeitura import PrefeituraExtractor

logger = get_logger(__name__)


class ExtractionFacade:
    """
    Single entry point for both sides of the reconciliation.
    Dispatches to the bank parser or the municipality extractor.
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None, bank_format: str = 'bank_txt_v1'):
        if bank_format not in PARSERS:
            raise UnsupportedFormatError(f"Formato de banco desconhecido: {bank_format}")
        self.settings = settings or DEFAULT_SETTINGS
        self.bank_parser = PARSERS[bank_format](settings=self.settings)
        self.prefeitura_extractor = PrefeituraExtractor(self.settings)

    def extract_bank(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        return self.bank_parser.extract(file_path_or_buffer, filename)

    def extract_prefeitura(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        return self.prefeitura_extractor.extract(file_path_or_buffer, filename)

    def extract(self, side, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        """
        Extracts one file for the given side ('banco' or 'prefeitura').

        Raises:
            UnsupportedFormatError: unknown side
        """
        try:
            side = RowSource(side)
        except ValueError:
            raise UnsupportedFormatError(f"Origem desconhecida: {side}", filename=filename)

        logger.info(f"Extracting {side.value} file", filename=filename)

        if side is RowSource.BANCO:
            return self.extract_bank(file_path_or_buffer, filename)
        return self.extract_prefeitura(file_path_or_buffer, filename)

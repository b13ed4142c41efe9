"""
Bank TXT Parser

Parses the fixed-width file the bank sends with the payroll deductions it
collected. One record per line; the first character tells the record type.
"""
import re
from collections import Counter
from typing import NamedTuple, Optional

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.logging_config import get_logger
from consignado.common.models import (
    ConfidenceLevel,
    DiagnosticsItem,
    ExtractionResult,
    NormalizedRow,
    RawRef,
    RowMeta,
    RowSource,
    Severity,
)
from ..base import BaseExtractor, determine_text_extracao
from ..config.layout import DEFAULT_BANK_LAYOUT, FixedWidthLayout
from ..money import cents_to_value, format_matricula

logger = get_logger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]")
_LINE_SPLIT = re.compile(r"\r?\n")

BANK_ERROR_CODES = ('BANK_LINE_TOO_SHORT', 'BANK_INVALID_MATRICULA', 'BANK_INVALID_VALOR')


class ParseLineResult(NamedTuple):
    row: Optional[NormalizedRow] = None
    diag: Optional[DiagnosticsItem] = None


def parse_bank_line(line: str, line_no: int, layout: FixedWidthLayout = DEFAULT_BANK_LAYOUT) -> ParseLineResult:
    """
    Parses a single line of the bank file.

    Args:
        line: Line content (line breaks are stripped)
        line_no: 1-indexed line number

    Returns:
        ParseLineResult with at most one of row/diag set. Blank lines
        yield neither.
    """
    clean_line = _LINE_BREAKS.sub('', line)

    if clean_line.strip() == '':
        return ParseLineResult()

    record_type = clean_line[0]

    if record_type == layout.header_type:
        return ParseLineResult(diag=DiagnosticsItem(
            severity=Severity.INFO,
            code='BANK_HEADER',
            message="Header do arquivo do banco detectado",
            details={'lineNo': line_no, 'raw': clean_line[:50]},
        ))

    if record_type != layout.data_type:
        return ParseLineResult(diag=DiagnosticsItem(
            severity=Severity.WARN,
            code='BANK_UNKNOWN_LINE_TYPE',
            message=f"Linha {line_no}: tipo desconhecido \"{record_type}\"",
            details={'lineNo': line_no, 'tipo': record_type, 'raw': clean_line[:50]},
        ))

    if len(clean_line) < layout.min_length:
        return ParseLineResult(diag=DiagnosticsItem(
            severity=Severity.ERROR,
            code='BANK_LINE_TOO_SHORT',
            message=f"Linha {line_no} muito curta ({len(clean_line)} chars, mínimo {layout.min_length})",
            details={'lineNo': line_no, 'length': len(clean_line), 'raw': clean_line},
        ))

    matricula_field = layout.get_field('matricula')
    matricula_raw = matricula_field.slice(clean_line)
    if not _is_digits(matricula_raw, matricula_field.length):
        return ParseLineResult(diag=DiagnosticsItem(
            severity=Severity.ERROR,
            code='BANK_INVALID_MATRICULA',
            message=f"Linha {line_no}: matrícula inválida \"{matricula_raw}\"",
            details={'lineNo': line_no, 'matriculaCompleta': matricula_raw, 'raw': clean_line},
        ))

    # last 2 digits are the suffix, everything before is the base
    matricula = format_matricula(int(matricula_raw[:-2]), int(matricula_raw[-2:]))

    valor_field = layout.get_field('valor')
    valor_raw = valor_field.slice(clean_line)
    if not _is_digits(valor_raw, valor_field.length):
        return ParseLineResult(diag=DiagnosticsItem(
            severity=Severity.ERROR,
            code='BANK_INVALID_VALOR',
            message=f"Linha {line_no}: valor inválido \"{valor_raw}\"",
            details={'lineNo': line_no, 'valorRaw': valor_raw, 'raw': clean_line},
        ))

    valor = cents_to_value(int(valor_raw))

    competencia = None
    competencia_field = layout.get_field('competencia')
    competencia_raw = competencia_field.slice(clean_line)
    if _is_digits(competencia_raw, competencia_field.length):
        competencia = f"{competencia_raw[:2]}/{competencia_raw[2:]}"

    evento = None
    evento_raw = layout.get_field('evento').slice(clean_line)
    if evento_raw and evento_raw.isascii() and evento_raw.isdigit():
        evento = str(int(evento_raw))

    row = NormalizedRow(
        source=RowSource.BANCO,
        matricula=matricula,
        valor=valor,
        meta=RowMeta(
            competencia=competencia,
            evento=evento,
            confidence=ConfidenceLevel.HIGH,
        ),
        raw_ref=RawRef(line_no=line_no, raw=clean_line),
    )
    return ParseLineResult(row=row)


def _is_digits(value: str, length: int) -> bool:
    return len(value) == length and value.isascii() and value.isdigit()


class BankTxtParser(BaseExtractor):
    """
    Whole-file driver for the bank TXT.

    Handles the encoding fallback, caps error diagnostics and reports the
    most frequent competence as the file's competence.
    """

    formato = 'bank_txt_v1'

    def __init__(self, layout: FixedWidthLayout = DEFAULT_BANK_LAYOUT, settings=None):
        super().__init__(settings)
        self.layout = layout

    def extract(self, file_path_or_buffer, filename: Optional[str] = None) -> ExtractionResult:
        raw = self.read_bytes(file_path_or_buffer)
        return self.parse_bytes(raw, filename=filename)

    def parse_bytes(self, raw: bytes, filename: Optional[str] = None) -> ExtractionResult:
        ledger = DiagnosticsLedger(origin='banco', error_cap=self.settings.max_error_diagnostics)
        content = self.decode_text(raw, ledger, 'BANK_ENCODING_FALLBACK')
        return self._parse_content(content, ledger, filename)

    def parse_text(self, content: str, filename: Optional[str] = None) -> ExtractionResult:
        ledger = DiagnosticsLedger(origin='banco', error_cap=self.settings.max_error_diagnostics)
        return self._parse_content(content, ledger, filename)

    def _parse_content(self, content: str, ledger: DiagnosticsLedger, filename: Optional[str]) -> ExtractionResult:
        logger.info("Bank file parsing started", filename=filename, layout=self.layout.name)

        rows = []
        valid_count = 0
        header_count = 0
        competencia_count = Counter()

        lines = _LINE_SPLIT.split(content)

        for i, line in enumerate(lines):
            result = parse_bank_line(line, i + 1, self.layout)

            if result.row:
                rows.append(result.row)
                valid_count += 1
                if result.row.meta.competencia:
                    competencia_count[result.row.meta.competencia] += 1

            if result.diag:
                # one summary entry instead of one per header line
                if result.diag.code == 'BANK_HEADER':
                    header_count += 1
                else:
                    ledger.add(result.diag)

        error_count = ledger.error_count

        if header_count > 0:
            ledger.info(
                'BANK_HEADER_COUNT',
                f"{header_count} linha(s) de header detectada(s)",
                headerCount=header_count,
            )

        if ledger.omitted_errors > 0:
            ledger.warn(
                'BANK_ERRORS_TRUNCATED',
                f"{ledger.omitted_errors} erros adicionais omitidos",
                omitted=ledger.omitted_errors,
                totalErrors=error_count,
                shown=self.settings.max_error_diagnostics,
            )

        summary = (
            f"Processadas {len(lines)} linhas: {valid_count} válidas, {error_count} com erro"
        )
        summary_details = {
            'totalLines': len(lines),
            'validCount': valid_count,
            'errorCount': error_count,
            'headerCount': header_count,
        }
        if error_count > 0:
            ledger.warn('BANK_PARSE_SUMMARY', summary, **summary_details)
        else:
            ledger.info('BANK_PARSE_SUMMARY', summary, **summary_details)

        # most_common keeps first-seen order on ties
        competencia = competencia_count.most_common(1)[0][0] if competencia_count else None

        extracao = determine_text_extracao(valid_count, competencia, ledger, BANK_ERROR_CODES)

        logger.info(
            "Bank file parsed",
            filename=filename,
            valid=valid_count,
            errors=error_count,
            headers=header_count,
            competencia=competencia,
            extracao=extracao.value,
        )

        return ExtractionResult(
            rows=rows,
            diagnostics=ledger.to_list(),
            competencia=competencia,
            formato=self.formato,
            extracao=extracao,
        )

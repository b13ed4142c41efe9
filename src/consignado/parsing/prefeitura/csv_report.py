"""
CSV Report Extractor

Parses the "Relação de Trabalhadores por Evento" CSV export:
- header block with the competence (e.g. "Mês/Ano: 01/2026")
- one section per event (e.g. "Evento: 002 - CONSIGNADO BB")
- data lines starting with the matricula (e.g. "85-1,NOME,...")
- quoted pt-BR amounts (e.g. "1.234,56"); the last one is the final value
"""
import re

from consignado.common.diagnostics import DiagnosticsLedger
from consignado.common.logging_config import get_logger
from consignado.common.models import (
    ConfidenceLevel,
    ExtractionResult,
    NormalizedRow,
    RawRef,
    RowMeta,
    RowSource,
)
from ..base import determine_text_extracao
from ..money import canonical_matricula, parse_brl
from ..patterns import MATRICULA_CSV_START, VALOR_ENTRE_ASPAS, detect_competencia, pad_evento

logger = get_logger(__name__)

FORMATO = 'csv_report_v1'

_EVENTO = re.compile(r"Evento:\s*(\d{1,3})", re.IGNORECASE)
_LINE_SPLIT = re.compile(r"\r?\n")


def extract_from_csv_report(text: str, ledger: DiagnosticsLedger = None) -> ExtractionResult:
    """
    Extracts rows from the CSV report text.

    Args:
        text: Full file content
        ledger: Optional ledger that already holds earlier diagnostics
            (e.g. an encoding fallback)

    Returns:
        ExtractionResult with one row per accepted data line
    """
    if ledger is None:
        ledger = DiagnosticsLedger(origin='prefeitura')
    rows = []

    total_lines = 0
    data_lines_detected = 0
    discarded_no_value = 0
    eventos_vistos = []

    competencia = None
    evento_atual = None

    for line_no, line in enumerate(_LINE_SPLIT.split(text), start=1):
        total_lines += 1
        trimmed = line.strip()
        if not trimmed:
            continue

        if competencia is None:
            competencia = detect_competencia(trimmed)

        evento_match = _EVENTO.search(trimmed)
        if evento_match:
            evento_atual = pad_evento(evento_match.group(1))
            if evento_atual not in eventos_vistos:
                eventos_vistos.append(evento_atual)
            continue

        matricula_match = MATRICULA_CSV_START.match(trimmed)
        if not matricula_match:
            continue

        data_lines_detected += 1
        matricula = canonical_matricula(matricula_match.group(1))

        quoted = VALOR_ENTRE_ASPAS.findall(trimmed)
        if not quoted:
            discarded_no_value += 1
            continue

        # the report always puts the final amount last
        valor = parse_brl(quoted[-1])
        if valor is None:
            discarded_no_value += 1
            continue

        rows.append(NormalizedRow(
            source=RowSource.PREFEITURA,
            matricula=matricula,
            valor=valor,
            meta=RowMeta(
                competencia=competencia,
                evento=evento_atual,
                confidence=ConfidenceLevel.HIGH,
            ),
            raw_ref=RawRef(line_no=line_no, raw=trimmed),
        ))

    extracted_rows = len(rows)
    summary_message = f"Extração CSV: {extracted_rows} linhas extraídas de {data_lines_detected} detectadas"
    summary_details = {
        'totalLines': total_lines,
        'dataLinesDetected': data_lines_detected,
        'extractedRows': extracted_rows,
        'discardedNoValue': discarded_no_value,
        'competenciaFound': competencia,
        'eventosVistosCount': len(eventos_vistos),
        'eventosVistos': eventos_vistos,
    }
    if extracted_rows > 0:
        ledger.info('prefeitura_csv_v1_summary', summary_message, **summary_details)
    else:
        ledger.error('prefeitura_csv_v1_summary', summary_message, **summary_details)
        ledger.error(
            'prefeitura_extraction_failed',
            "Nenhuma linha de dados extraída do arquivo da prefeitura",
            totalLines=total_lines,
            dataLinesDetected=data_lines_detected,
            discardedNoValue=discarded_no_value,
        )

    logger.info("CSV report extracted", rows=extracted_rows, data_lines=data_lines_detected, competencia=competencia)

    return ExtractionResult(
        rows=rows,
        diagnostics=ledger.to_list(),
        competencia=competencia,
        formato=FORMATO,
        extracao=determine_text_extracao(extracted_rows, competencia, ledger),
    )

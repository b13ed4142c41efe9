"""
Text Report Extractor

Reads municipality reports that arrive as loose text (TXT exports or the
text layer of a PDF).

Two strategies:
- standard: matricula and amount on the same line
- column_separated: PDFs whose text layer lists every matricula first and
  every "name / CPF / amounts" line afterwards; both lists are paired by
  position
"""
import re
from dataclasses import replace
from typing import List, NamedTuple, Optional, Tuple

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
from ..patterns import CPF, MATRICULA_ANYWHERE, MATRICULA_START, VALOR_BR, detect_competencia, pad_evento

logger = get_logger(__name__)

FORMATO = 'text_report_v1'

DEGRADING_CODES = ('TEXT_COLUMN_MISMATCH',)

_EVENTO = re.compile(r"Evento:\s*(\d{1,4})", re.IGNORECASE)
_LINE_SPLIT = re.compile(r"\r?\n")
_LEADING_MATRICULA = re.compile(r"^\d{1,6}-\d{1,3}\s*")
_NUMERIC_TAIL = re.compile(r"^[\d/\s.]+$")

_HEADER_PATTERNS = [
    re.compile(pattern, re.IGNORECASE) for pattern in (
        r"^Matrícula$",
        r"^Nome do Trabalhador",
        r"^Relação de Trabalhadores",
        r"^PREFEITURA MUNICIPAL",
        r"^RUA\s+\w+",
        r"^CNPJ:",
        r"^Fiorilli",
        r"^Mensal",
        r"^Folha$",
        r"^Página\s+\d+",
        r"^--\s*\d+\s+of\s+\d+\s*--$",
        r"^Total:",
        r"^Referência",
        r"^Qtde\.",
        r"^Valor$",
    )
]

RAW_LIMIT = 300
PURE_MATRICULA_MAX_LENGTH = 50


class _DataEntry(NamedTuple):
    valor: float
    nome: Optional[str]
    cpf: Optional[str]
    evento: Optional[str]
    line_no: int
    raw: str


def is_header_line(line: str) -> bool:
    """Report furniture (titles, column captions, page markers)."""
    return any(pattern.search(line) for pattern in _HEADER_PATTERNS)


def extract_nome_cpf(line: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Name is whatever precedes the CPF, minus a leading matricula.

    Returns:
        (nome, cpf); nome only when longer than 2 chars
    """
    match = CPF.search(line)
    if not match:
        return None, None

    before = line[:match.start()].strip()
    nome = _LEADING_MATRICULA.sub('', before).strip()
    return (nome if len(nome) > 2 else None), match.group(1)


def parse_valores(line: str) -> List[float]:
    valores = (parse_brl(v) for v in VALOR_BR.findall(line))
    return [v for v in valores if v is not None]


def choose_value(valores: List[float]) -> Optional[float]:
    """
    Last non-zero amount; the last one when every amount is zero.

        [0.0, 400.49, 0.0] -> 400.49
        [0.0, 0.0]         -> 0.0
    """
    if not valores:
        return None
    non_zero = [v for v in valores if v > 0]
    if non_zero:
        return non_zero[-1]
    return valores[-1]


def _detect_evento(line: str) -> Optional[str]:
    match = _EVENTO.search(line)
    return pad_evento(match.group(1)) if match else None


def _warn_missing_context(ledger: DiagnosticsLedger, competencia: Optional[str],
                          eventos_detectados: int, extracted_rows: int) -> None:
    if not competencia:
        ledger.warn('TEXT_COMPETENCIA_NOT_FOUND', "Competência não detectada no texto")
    if eventos_detectados == 0 and extracted_rows > 0:
        ledger.warn('TEXT_EVENT_NOT_FOUND', "Nenhum evento detectado no texto")


def _build_result(rows: List[NormalizedRow], ledger: DiagnosticsLedger,
                  competencia: Optional[str]) -> ExtractionResult:
    return ExtractionResult(
        rows=rows,
        diagnostics=ledger.to_list(),
        competencia=competencia,
        formato=FORMATO,
        extracao=determine_text_extracao(len(rows), competencia, ledger, DEGRADING_CODES),
    )


def parse_standard_format(text: str) -> ExtractionResult:
    """
    One data line = one row: matricula (at the start, or anywhere on lines
    without a CPF) plus one or more pt-BR amounts.
    """
    ledger = DiagnosticsLedger(origin='prefeitura')
    rows = []

    lines = _LINE_SPLIT.split(text)
    competencia = None
    evento_atual = None
    eventos_detectados = 0
    data_lines_detected = 0
    discarded_no_value = 0

    for line_no, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if competencia is None:
            competencia = detect_competencia(trimmed)

        evento = _detect_evento(trimmed)
        if evento:
            evento_atual = evento
            eventos_detectados += 1
            continue

        match = MATRICULA_START.match(trimmed)
        if not match:
            # CPF without a leading matricula belongs to the column-separated layout
            if CPF.search(trimmed):
                continue
            match = MATRICULA_ANYWHERE.search(trimmed)
            if not match:
                continue

        data_lines_detected += 1

        valores = parse_valores(trimmed)
        valor = choose_value(valores)
        if valor is None:
            discarded_no_value += 1
            continue

        nome, cpf = extract_nome_cpf(trimmed)

        rows.append(NormalizedRow(
            source=RowSource.PREFEITURA,
            matricula=canonical_matricula(match.group(1)),
            valor=valor,
            nome=nome,
            cpf=cpf,
            meta=RowMeta(
                competencia=competencia,
                evento=evento_atual,
                confidence=ConfidenceLevel.HIGH if len(valores) == 1 else ConfidenceLevel.MEDIUM,
                nome=nome,
                cpf=cpf,
            ),
            raw_ref=RawRef(line_no=line_no, raw=trimmed[:RAW_LIMIT]),
        ))

    _warn_missing_context(ledger, competencia, eventos_detectados, len(rows))

    if not rows:
        ledger.error(
            'TEXT_ZERO_ROWS',
            "Nenhuma linha com matrícula e valor foi extraída",
            dataLinesDetected=data_lines_detected,
            discardedNoValue=discarded_no_value,
        )
    else:
        ledger.info(
            'TEXT_PARSE_SUMMARY',
            f"Extraídas {len(rows)} linhas de {data_lines_detected} detectadas",
            totalLines=len(lines),
            dataLinesDetected=data_lines_detected,
            extractedRows=len(rows),
            discardedNoValue=discarded_no_value,
            competenciaFound=competencia,
            eventosDetectados=eventos_detectados,
            extractionMethod='standard',
        )

    return _build_result(rows, ledger, competencia)


def parse_column_separated_format(text: str) -> ExtractionResult:
    """
    Collects pure matricula lines and CPF data lines separately, then pairs
    them by position up to the shorter list. Every row is `medium`.
    """
    ledger = DiagnosticsLedger(origin='prefeitura')
    rows = []

    lines = _LINE_SPLIT.split(text)
    competencia = None
    evento_atual = None
    eventos_detectados = 0

    matriculas: List[str] = []
    dados: List[_DataEntry] = []

    for line_no, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if competencia is None:
            competencia = detect_competencia(trimmed)

        evento = _detect_evento(trimmed)
        if evento:
            evento_atual = evento
            eventos_detectados += 1
            continue

        if is_header_line(trimmed):
            continue

        matricula_match = MATRICULA_START.match(trimmed)
        cpf_match = CPF.search(trimmed)

        if matricula_match and not cpf_match:
            resto = trimmed[matricula_match.end():].strip()
            if len(trimmed) < PURE_MATRICULA_MAX_LENGTH or _NUMERIC_TAIL.match(resto):
                matriculas.append(canonical_matricula(matricula_match.group(1)))
                continue

        if cpf_match:
            valor = choose_value(parse_valores(trimmed))
            if valor is not None:
                nome, cpf = extract_nome_cpf(trimmed)
                dados.append(_DataEntry(valor, nome, cpf, evento_atual, line_no, trimmed[:RAW_LIMIT]))

    for matricula, dado in zip(matriculas, dados):
        rows.append(NormalizedRow(
            source=RowSource.PREFEITURA,
            matricula=matricula,
            valor=dado.valor,
            nome=dado.nome,
            cpf=dado.cpf,
            meta=RowMeta(
                competencia=competencia,
                evento=dado.evento,
                confidence=ConfidenceLevel.MEDIUM,
                nome=dado.nome,
                cpf=dado.cpf,
            ),
            raw_ref=RawRef(line_no=dado.line_no, raw=dado.raw),
        ))

    if not rows:
        ledger.error(
            'TEXT_ZERO_ROWS',
            "Nenhuma linha com matrícula e valor foi extraída",
            matriculasFound=len(matriculas),
            dadosComValorFound=len(dados),
        )
    else:
        if len(matriculas) != len(dados):
            ledger.warn(
                'TEXT_COLUMN_MISMATCH',
                f"Número de matrículas ({len(matriculas)}) diferente de valores ({len(dados)})",
                matriculasFound=len(matriculas),
                dadosComValorFound=len(dados),
                matched=len(rows),
            )
        ledger.info(
            'TEXT_PARSE_SUMMARY',
            f"Extraídas {len(rows)} linhas (formato colunas separadas)",
            totalLines=len(lines),
            matriculasFound=len(matriculas),
            dadosComValorFound=len(dados),
            extractedRows=len(rows),
            competenciaFound=competencia,
            eventosDetectados=eventos_detectados,
            extractionMethod='column_separated',
        )

    _warn_missing_context(ledger, competencia, eventos_detectados, len(rows))

    return _build_result(rows, ledger, competencia)


def parse_text_report(text: str, ledger: Optional[DiagnosticsLedger] = None) -> ExtractionResult:
    """
    Runs the standard pass; falls back to the column-separated pass when it
    produced no rows.

    Args:
        text: Decoded report text
        ledger: Optional ledger whose items (e.g. an encoding fallback) are
            placed before the pass diagnostics

    Returns:
        ExtractionResult with formato 'text_report_v1'
    """
    result = parse_standard_format(text)
    method = 'standard'
    if not result.rows:
        result = parse_column_separated_format(text)
        method = 'column_separated'

    logger.info("Text report extracted", method=method, rows=len(result.rows),
                competencia=result.competencia, extracao=result.extracao.value)

    if ledger is not None and len(ledger):
        result = replace(result, diagnostics=ledger.to_list() + list(result.diagnostics))
    return result

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd


class RowSource(str, Enum):
    BANCO = 'banco'
    PREFEITURA = 'prefeitura'


class ConfidenceLevel(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class Severity(str, Enum):
    INFO = 'info'
    WARN = 'warn'
    ERROR = 'error'


class ExtracaoQualidade(str, Enum):
    """Whole-document outcome of one extraction run."""
    COMPLETA = 'completa'
    PARCIAL = 'parcial'
    FALHOU = 'falhou'


@dataclass(frozen=True)
class RowMeta:
    competencia: Optional[str] = None  # MM/YYYY
    evento: Optional[str] = None
    confidence: Optional[ConfidenceLevel] = None
    nome: Optional[str] = None
    cpf: Optional[str] = None


@dataclass(frozen=True)
class RawRef:
    """Provenance of a row. Kept for audit only, never parsed again."""
    line_no: Optional[int] = None
    sheet: Optional[str] = None
    page: Optional[int] = None
    raw: Optional[str] = None


@dataclass(frozen=True)
class NormalizedRow:
    """
    Canonical representation of one payroll deduction record.
    Used to standardize data coming from the bank file and from every
    municipality report format.
    """
    source: RowSource
    matricula: str  # "<base>-<suffix>", e.g. "85-1"
    valor: float  # always rounded to cents
    nome: Optional[str] = None
    cpf: Optional[str] = None
    meta: RowMeta = field(default_factory=RowMeta)
    raw_ref: RawRef = field(default_factory=RawRef)

    def to_dict(self):
        data = asdict(self)
        data['source'] = self.source.value
        if self.meta.confidence is not None:
            data['meta']['confidence'] = self.meta.confidence.value
        return data


@dataclass(frozen=True)
class DiagnosticsItem:
    severity: Severity
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def to_dict(self):
        return {
            'severity': self.severity.value,
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """What every top-level extractor hands back to its caller."""
    rows: List[NormalizedRow]
    diagnostics: List[DiagnosticsItem]
    competencia: Optional[str] = None
    formato: str = 'unknown'
    extracao: ExtracaoQualidade = ExtracaoQualidade.FALHOU

    def to_dict(self):
        return {
            'rows': [r.to_dict() for r in self.rows],
            'diagnostics': [d.to_dict() for d in self.diagnostics],
            'competencia': self.competencia,
            'formato': self.formato,
            'extracao': self.extracao.value,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Flat view of the rows: one line per row, meta fields inlined."""
        columns = ['source', 'matricula', 'valor', 'nome', 'cpf',
                   'competencia', 'evento', 'confidence', 'line_no', 'sheet']
        data = []
        for row in self.rows:
            data.append({
                'source': row.source.value,
                'matricula': row.matricula,
                'valor': row.valor,
                'nome': row.nome or row.meta.nome,
                'cpf': row.cpf or row.meta.cpf,
                'competencia': row.meta.competencia,
                'evento': row.meta.evento,
                'confidence': row.meta.confidence.value if row.meta.confidence else None,
                'line_no': row.raw_ref.line_no,
                'sheet': row.raw_ref.sheet,
            })
        return pd.DataFrame(data, columns=columns)

    def diagnostics_by_code(self, code: str) -> List[DiagnosticsItem]:
        return [d for d in self.diagnostics if d.code == code]


# Reconciliation result types. Produced by the matching step, which lives
# outside this package.

class ReconciliationStatus(str, Enum):
    BATEU = 'bateu'
    SO_NO_BANCO = 'so_no_banco'
    SO_NA_PREFEITURA = 'so_na_prefeitura'
    DIVERGENTE = 'divergente'
    DIAGNOSTICO = 'diagnostico'


@dataclass(frozen=True)
class ReconciliationItem:
    matricula: str
    status: ReconciliationStatus
    valor_banco: Optional[float] = None
    valor_prefeitura: Optional[float] = None
    obs: Optional[str] = None
    nome: Optional[str] = None
    cpf: Optional[str] = None


@dataclass(frozen=True)
class ReconciliationSummary:
    extracao: ExtracaoQualidade
    counts: Dict[str, int]
    competencia: Optional[str] = None
    taxa_match: Optional[float] = None  # 0-100


@dataclass(frozen=True)
class ReconciliationResult:
    summary: ReconciliationSummary
    items: List[ReconciliationItem]
    diagnostics: List[DiagnosticsItem]

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ExtractionResponse(BaseModel):
    filename: Optional[str] = None
    formato: str
    extracao: str
    competencia: Optional[str] = None
    row_count: int
    total_valor: float
    rows: List[Dict[str, Any]]
    diagnostics: List[Dict[str, Any]]


class PairExtractionResponse(BaseModel):
    banco: ExtractionResponse
    prefeitura: ExtractionResponse


class HealthResponse(BaseModel):
    status: str
    app: str

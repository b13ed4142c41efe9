import asyncio
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from consignado.api.schemas import ExtractionResponse, PairExtractionResponse
from consignado.common.logging_config import get_logger, get_request_id, request_context
from consignado.common.models import ExtractionResult, RowSource
from consignado.parsing.config.settings import ExtractionSettings
from consignado.parsing.exceptions import ExtractionError
from consignado.parsing.facade import ExtractionFacade

router = APIRouter()
logger = get_logger(__name__)

facade = ExtractionFacade(ExtractionSettings.from_env())


def to_response(result: ExtractionResult, filename: Optional[str]) -> ExtractionResponse:
    df = result.to_dataframe()
    total = round(float(df['valor'].sum()), 2) if not df.empty else 0.0
    payload = result.to_dict()
    return ExtractionResponse(
        filename=filename,
        formato=result.formato,
        extracao=result.extracao.value,
        competencia=result.competencia,
        row_count=len(result.rows),
        total_valor=total,
        rows=payload['rows'],
        diagnostics=payload['diagnostics'],
    )


def _extract_in_thread(side: RowSource, content: bytes, filename: Optional[str], request_id: str) -> ExtractionResult:
    with request_context(request_id):
        return facade.extract(side, content, filename)


async def _extract(side: RowSource, file: UploadFile) -> ExtractionResponse:
    content = await file.read()
    result = await run_in_threadpool(_extract_in_thread, side, content, file.filename, get_request_id())
    return to_response(result, file.filename)


@router.post("/banco", response_model=ExtractionResponse)
async def extract_banco(file: UploadFile = File(...)):
    """Parses the bank fixed-width TXT file."""
    try:
        return await _extract(RowSource.BANCO, file)
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Bank extraction failed: {e}", exc_info=True, filename=file.filename)
        raise HTTPException(status_code=500, detail=f"Erro ao processar arquivo do banco: {str(e)}")


@router.post("/prefeitura", response_model=ExtractionResponse)
async def extract_prefeitura(file: UploadFile = File(...)):
    """Extracts the municipality report (CSV, XLS/XLSX, TXT or PDF)."""
    try:
        return await _extract(RowSource.PREFEITURA, file)
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Municipality extraction failed: {e}", exc_info=True, filename=file.filename)
        raise HTTPException(status_code=500, detail=f"Erro ao processar arquivo da prefeitura: {str(e)}")


@router.post("/", response_model=PairExtractionResponse)
async def extract_pair(banco: UploadFile = File(...), prefeitura: UploadFile = File(...)):
    """
    Extracts both sides of a reconciliation.
    The two files share nothing, so they run concurrently in the thread pool.
    """
    try:
        banco_response, prefeitura_response = await asyncio.gather(
            _extract(RowSource.BANCO, banco),
            _extract(RowSource.PREFEITURA, prefeitura),
        )
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Extraction failed: {e}", exc_info=True, banco=banco.filename, prefeitura=prefeitura.filename)
        raise HTTPException(status_code=500, detail=f"Erro ao processar arquivos: {str(e)}")

    logger.info(
        "Pair extracted",
        banco_rows=banco_response.row_count,
        prefeitura_rows=prefeitura_response.row_count,
    )
    return PairExtractionResponse(banco=banco_response, prefeitura=prefeitura_response)

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from consignado import __version__
from consignado.api.endpoints import extract
from consignado.api.schemas import HealthResponse
from consignado.common.logging_config import get_logger, set_request_id, setup_logging

APP_NAME = "Conciliação Consignado"

# Initialize Structured Logging
setup_logging()
logger = get_logger("api.main")

app = FastAPI(title=f"{APP_NAME} API", version=__version__)


# Middleware for Request ID and Logging
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())
    set_request_id(request_id)

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else "unknown",
    )

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"Request failed: {str(e)}",
            error=str(e),
            process_time_ms=round(process_time * 1000, 2),
            exc_info=True,
        )
        raise


# CORS Setup - Enable frontend access
origins = [
    "http://localhost:5173",  # Vite Default
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(extract.router, prefix="/api/extract", tags=["Extract"])


@app.get("/api/health", response_model=HealthResponse)
def health_check():
    return {"status": "ok", "app": APP_NAME}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8010)

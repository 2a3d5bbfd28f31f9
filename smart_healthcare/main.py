from fastapi import FastAPI, Request
from loguru import logger

from smart_healthcare.api.recommendations import router as recommendations_router
from smart_healthcare.config.settings import settings
from smart_healthcare.core.logger import setup_logger

# Initialize logger
setup_logger(level=settings.log_level)

app = FastAPI(title="Smart Healthcare")

app.include_router(recommendations_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response

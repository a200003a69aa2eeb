from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.routers import invoices, analytics, exchange_rates
from app.config import settings
from app.exceptions import InvalidParameterError, NotFoundError
from app.services.fx_service import FXService
import logging
import sys

# Configure logging
logging.basicConfig(
    level=(settings.log_level or "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info("Starting Invoice Ledger API")
logger.info("="*60)
logger.info(f"Database: {settings.database_url.split('@')[-1]}")
logger.info(f"Reporting currency: {settings.reporting_currency}")
logger.info(f"Exchange rate source: {settings.fx_api_base_url}")
logger.info(
    f"Exchange rate cache TTL: {settings.fx_cache_ttl_seconds}s server, "
    f"{settings.fx_display_cache_ttl_seconds}s display"
)
logger.info(f"Duplicate detection enabled: {settings.duplicate_detection_enabled}")
logger.info("="*60)

# Tables are created by Alembic migrations (alembic upgrade head)

app = FastAPI(
    title="Invoice Ledger API",
    description="API for tracking multi-currency invoices and spending analytics",
    version="1.0.0"
)

# One rate provider for server-side conversions and one for UI lookups, each with its own cache
app.state.fx_service = FXService(cache_ttl_seconds=settings.fx_cache_ttl_seconds)
app.state.display_fx_service = FXService(cache_ttl_seconds=settings.fx_display_cache_ttl_seconds)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list, skipping blanks."""
    origins = []
    for origin in origins_str.split(","):
        origin = origin.strip()
        if origin:
            origins.append(origin)
    return origins


# Default origins for local development
default_origins = ["http://localhost:3000", "http://localhost:3001"]
all_origins = parse_cors_origins(settings.cors_origins) or default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(invoices.router)
app.include_router(analytics.router)
app.include_router(exchange_rates.router)


@app.get("/")
def root():
    return {"message": "Invoice Ledger API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(InvalidParameterError)
async def invalid_parameter_handler(request: Request, exc: InvalidParameterError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log anything unexpected and answer with a generic 500"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

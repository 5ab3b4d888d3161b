"""CoworkHub Payment Reconciliation - Main Application."""

import logging.config

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coworkhub.api.routes import payments, reconciliation, reports, threat
from coworkhub.core.config import settings
from coworkhub.core.database import Base, engine
from coworkhub.core.exceptions import CoworkHubError
from coworkhub.core.logging import setup_logging
from coworkhub.core.logging_config import LOGGING_CONFIG
from coworkhub.models import (  # noqa: F401  (register tables on Base.metadata)
    RecordedPayment,
    Reconciliation,
    ReconciliationItem,
    UserBehaviorProfile,
)
from coworkhub.schemas.common import ErrorResponse

# Configure logging before anything else
logging.config.dictConfig(LOGGING_CONFIG)
logger = setup_logging()

logger.info("Creating database tables...")
Base.metadata.create_all(bind=engine)
logger.info("Database tables ready")

tags_metadata = [
    {
        "name": "Health",
        "description": "Service health and readiness checks.",
    },
    {
        "name": "Payments",
        "description": "Load and list the payments recorded by the billing side.",
    },
    {
        "name": "Reconciliation",
        "description": (
            "Create reconciliations from bank statements, auto-match statement "
            "lines against recorded payments, correct matches by hand, record "
            "adjustments and approve or reject the result."
        ),
    },
    {
        "name": "Reports",
        "description": "Per-reconciliation reports with discrepancy groups and recommendations.",
    },
    {
        "name": "Threat Detection",
        "description": "Per-user behavior baselines and anomaly scoring of activity samples.",
    },
]


app = FastAPI(
    title="CoworkHub Payment Reconciliation",
    description=(
        "## Payment Reconciliation API\n\n"
        "Compares bank statement lines with the payments recorded for a "
        "coworking tenant, scores candidate matches and tracks every "
        "reconciliation from auto-matching through review to approval.\n\n"
        "Every request carries an `X-Tenant-ID` header; mutating requests "
        "also carry `X-User-ID`.\n\n"
        "### Match Scoring\n"
        "| Component | Weight |\n"
        "|-----------|--------|\n"
        "| Amount | 0.40 |\n"
        "| Date | 0.25 |\n"
        "| Reference | 0.20 |\n"
        "| Description | 0.15 |\n\n"
        "### Quick Start\n"
        "```bash\n"
        "# 1. Load recorded payments\n"
        "curl -X POST /api/v1/payments/load -H 'X-Tenant-ID: t1' "
        "-H 'Content-Type: application/json' -d @payments.json\n\n"
        "# 2. Upload a bank statement and auto-match it\n"
        "curl -X POST /api/v1/reconciliations/upload -H 'X-Tenant-ID: t1' "
        "-H 'X-User-ID: u1' -F file=@statement.csv "
        "-F start_date=2024-01-01 -F end_date=2024-01-31\n\n"
        "# 3. Read the report\n"
        "curl /api/v1/reconciliations/<id>/report -H 'X-Tenant-ID: t1'\n"
        "```\n"
    ),
    version="1.0.0",
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── Error envelopes ──────────────────────────────────────────────────


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(CoworkHubError)
async def domain_error_handler(request: Request, exc: CoworkHubError) -> JSONResponse:
    return _failure(400, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _failure(400, f"Invalid request: {exc.errors()}")


@app.exception_handler(pydantic.ValidationError)
async def model_validation_handler(
    request: Request, exc: pydantic.ValidationError
) -> JSONResponse:
    return _failure(400, f"Invalid request: {exc.errors()}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(500, "Internal server error")


app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(
    reconciliation.router, prefix="/api/v1/reconciliations", tags=["Reconciliation"]
)
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(threat.router, prefix="/api/v1/threat", tags=["Threat Detection"])

logger.info("CoworkHub reconciliation API ready - routes registered")


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "coworkhub-backend"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("coworkhub.main:app", host="0.0.0.0", port=settings.app_port)

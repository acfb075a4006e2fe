"""
ROI Assessment Service - Main Application
=========================================

FastAPI application for warehouse-management ROI assessments.

Version: 0.1.0
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import settings
from shared.database import MongoDBClient
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models.common import HealthResponse

from services.roi_assessment.routes import (
    assessments,
    audit_logs,
    auth,
    comments,
    companies,
    dashboard,
    questionnaire_responses,
    questionnaires,
    recommendations,
    report_versions,
    reports,
    roi_calculations,
    templates,
    users,
)
from services.roi_assessment.routes import settings as settings_routes

SERVICE_NAME = "WMS ROI Assessment Service"
SERVICE_VERSION = "0.1.0"

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name=settings.service_name,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "roi_assessment_starting",
        environment=settings.environment.value,
        port=settings.service_port,
    )

    # Startup
    try:
        MongoDBClient.get_client()
        await MongoDBClient.create_indexes()
        logger.info("mongodb_connected", database=settings.mongodb.db)
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("roi_assessment_shutting_down")
    await MongoDBClient.close()


# Create FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description="Warehouse-management ROI assessments, reports and recommendations",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Any:
    """Bind a request id to every log line emitted while handling the request."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    clear_context()
    bind_context(request_id=request_id, path=request.url.path, method=request.method)
    try:
        response = await call_next(request)
    finally:
        clear_context()
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and MongoDB.
    """
    components: dict[str, dict[str, Any]] = {
        "mongodb": await MongoDBClient.health_check(),
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service=settings.service_name,
        version=SERVICE_VERSION,
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str | None]:
    """Root endpoint. ``docs`` is null when the interactive docs are disabled."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": app.docs_url,
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(companies.router, prefix="/api/v1/companies", tags=["Companies"])
app.include_router(assessments.router, prefix="/api/v1/assessments", tags=["Assessments"])
app.include_router(comments.router, prefix="/api/v1", tags=["Comments"])
app.include_router(
    questionnaires.router,
    prefix="/api/v1/questionnaires",
    tags=["Questionnaires"],
)
app.include_router(
    questionnaire_responses.router,
    prefix="/api/v1/questionnaire-responses",
    tags=["Questionnaire Responses"],
)
app.include_router(
    roi_calculations.router,
    prefix="/api/v1/roi-calculations",
    tags=["ROI Calculations"],
)
app.include_router(
    recommendations.router,
    prefix="/api/v1/recommendations",
    tags=["Recommendations"],
)
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(report_versions.router, prefix="/api/v1/reports", tags=["Report Versions"])
app.include_router(templates.router, prefix="/api/v1/templates", tags=["Templates"])
app.include_router(settings_routes.router, prefix="/api/v1/settings", tags=["Settings"])
app.include_router(audit_logs.router, prefix="/api/v1/audit-logs", tags=["Audit Logs"])
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed request bodies and parameters as 400."""
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    logger.warning("validation_error", path=request.url.path, errors=len(details))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Validation error",
            "status_code": status.HTTP_400_BAD_REQUEST,
            "details": details,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500,
        },
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.roi_assessment.main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )

"""
Response-Time Service - Main Application
========================================

Response-time and SLA analytics for CRM chat conversations.

Modules:
- Response Time: fetch CRM events, pair messages with replies, report
  business-hours response times per agent

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, calendar, pairing and statistics
- Infrastructure: CRM events client, config file, report cache
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings
from src.core import ApplicationException
from src.response_time.application import ResponseTimeService
from src.response_time.infrastructure import (
    BusinessHoursConfigManager, CrmEventsClient, ReportCache
)
from src.response_time.interfaces import response_time_router
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load business-hours configuration and watch it for changes
    3. Create the CRM events client and report cache
    4. Wire the response-time service

    SHUTDOWN:
    1. Stop config watcher
    2. Close the CRM events client
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Response-Time Service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Loading business-hours configuration")
    config_manager = BusinessHoursConfigManager()
    config_manager.load(settings.business_hours_config_path)
    config_manager.start_watching()

    events_client = CrmEventsClient()
    report_cache = ReportCache(
        settings.report_cache_ttl_seconds,
        max_entries=settings.report_cache_max_entries,
    )

    app.state.settings = settings
    app.state.config_manager = config_manager
    app.state.report_cache = report_cache
    app.state.response_time_service = ResponseTimeService(
        events_client,
        config_manager,
        cache=report_cache,
        timezone_name=settings.business_timezone,
    )

    logger.info("Response-Time Service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Response-Time Service")
    config_manager.stop_watching()
    await events_client.close()
    logger.info("Response-Time Service shutdown complete")


app = FastAPI(
    title="Response-Time Analytics API",
    description="""
    ## CRM Response-Time and SLA Analytics

    Measures how quickly agents answer customer chat messages.

    **Endpoints:**
    - `POST /response-time/analyze` - Per-agent and overall response-time statistics
    - `GET /response-time/business-hours` - Configured business hours and SLA

    **How response time is measured:**
    - Each customer message is paired with the first later agent reply not
      already used for an earlier message
    - Time outside business hours is not counted
    - The pair belongs to the agent responsible when the customer wrote in
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(response_time_router)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports whether the business-hours configuration is loaded and how many
    reports are cached.
    """
    config_manager = getattr(request.app.state, "config_manager", None)
    report_cache = getattr(request.app.state, "report_cache", None)

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {
            "business_hours_config": "loaded" if config_manager else "not_loaded",
            "report_cache": (
                f"{len(report_cache)} entries"
                if report_cache is not None and report_cache.enabled
                else "disabled"
            ),
        }
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Response-Time Service",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "response_time": {
                "prefix": "/response-time",
                "endpoints": [
                    "POST /response-time/analyze - Compute response-time statistics",
                    "GET /response-time/business-hours - Get configured business hours"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )

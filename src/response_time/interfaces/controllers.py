"""
Response-Time Controllers (API Routes)
======================================

FastAPI routes for response-time analytics.

Controllers are thin - they delegate to the application service.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.response_time.application import (
    BusinessHoursResponse,
    ResponseTimeRequest,
    ResponseTimeResponse,
    ResponseTimeService,
)
from src.shared.infrastructure.logging import get_context_logger

router = APIRouter(prefix="/response-time", tags=["Response Time"])

DISCONNECT_POLL_SECONDS = 0.5


# ========== Example payloads for Swagger ==========

ANALYZE_REQUEST_EXAMPLE = {
    "accessToken": "<crm access token>",
    "accountUrl": "https://example.kommo.com",
    "fromTimestamp": 1717200000,
    "toTimestamp": 1719792000,
    "leadIds": [],
    "businessHours": {"startHour": 8, "endHour": 18, "days": [1, 2, 3, 4, 5], "slaMinutes": 10},
    "users": [{"id": 501, "name": "Ana"}]
}

ANALYZE_RESPONSE_EXAMPLE = {
    "userMetrics": [
        {
            "responsibleUserId": 501,
            "responsibleUserName": "Ana",
            "avgResponseMinutes": 7.4,
            "medianResponseMinutes": 5.0,
            "p90ResponseMinutes": 15.0,
            "totalMessages": 12,
            "withinSla": 9,
            "slaRate": 75.0
        }
    ],
    "overall": {
        "avgResponseMinutes": 7.4,
        "medianResponseMinutes": 5.0,
        "p90ResponseMinutes": 15.0,
        "totalPairs": 12,
        "withinSla": 9,
        "slaRate": 75.0
    },
    "totalEventsProcessed": 240,
    "slaMinutes": 10,
    "fetchComplete": True,
    "fetchStopReason": "exhausted",
    "pagesFetched": 3,
    "cached": False
}


# ========== Dependencies ==========

def get_response_time_service(request: Request) -> ResponseTimeService:
    """Get the response-time service created at startup."""
    service = getattr(request.app.state, "response_time_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Response-time service not initialized"
        )
    return service


async def watch_disconnect(
    request: Request,
    cancel_event: asyncio.Event,
    poll_seconds: float = DISCONNECT_POLL_SECONDS
) -> None:
    """Set `cancel_event` once the client has gone away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(poll_seconds)


# ========== Route Handlers ==========

@router.post(
    "/analyze",
    response_model=ResponseTimeResponse,
    summary="Compute response-time and SLA statistics",
    description="""
    Fetch chat and ownership events for the window, pair each customer
    message with the agent reply that answered it, and report per-agent
    and overall response times in business minutes.

    **Required**: `accessToken`, `accountUrl`, `fromTimestamp`, `toTimestamp`
    (400 when missing).

    **Partial data**: when the event fetch stops early (timeout, page limit,
    API error) the statistics cover what was fetched and `fetchComplete`
    is false.
    """,
    responses={
        200: {
            "description": "Response-time statistics",
            "content": {"application/json": {"example": ANALYZE_RESPONSE_EXAMPLE}}
        },
        400: {"description": "Missing required parameters"}
    }
)
async def analyze_response_time(
    body: ResponseTimeRequest,
    request: Request,
    service: ResponseTimeService = Depends(get_response_time_service)
):
    logger = get_context_logger(__name__, getattr(request.state, "correlation_id", None))

    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        report = await service.analyze(
            access_token=body.access_token,
            account_url=body.account_url,
            from_timestamp=body.from_timestamp,
            to_timestamp=body.to_timestamp,
            business_hours=body.business_hours,
            lead_ids=body.lead_ids,
            cancel_event=cancel_event,
        )
    finally:
        watcher.cancel()

    if cancel_event.is_set():
        logger.info("Client disconnected during analysis; fetch stopped early")

    logger.info(
        "Response-time analysis complete",
        extra={
            "pairs": report.total_pairs,
            "users": len(report.user_metrics),
            "fetch_complete": report.fetch_complete,
            "cached": report.from_cache,
        }
    )

    return ResponseTimeResponse.from_report(report, body.user_names())


@router.get(
    "/business-hours",
    response_model=BusinessHoursResponse,
    summary="Get configured business hours",
    description="Default business hours, SLA threshold and time zone used when a request has none."
)
async def get_business_hours(
    service: ResponseTimeService = Depends(get_response_time_service)
):
    calendar = service.calendar_for()
    return BusinessHoursResponse.from_config(calendar.config, service.timezone_name)


response_time_router = router

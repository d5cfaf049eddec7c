"""
Webhook Controllers (API Routes)
================================

``POST /webhook/alert``: entry point for monitoring systems.

Controllers are thin - they delegate to AlertIngestionService.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from alertbridge.container import ServiceContainer
from alertbridge.core import Err
from alertbridge.shared.api.dependencies import get_client_ip, get_container
from alertbridge.shared.api.middleware import error_body
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application import CreateError

logger = get_logger(__name__)
router = APIRouter(prefix="/webhook", tags=["Webhook"])


# ========== Example payloads for Swagger ==========

ALERT_REQUEST_EXAMPLE = {
    "summary": "Disk usage above 95% on srv-42",
    "description": "/var is at 97% and growing",
    "ciId": "srv-42",
    "service": "db",
    "severity": "High",
    "alertType": "Incident",
    "environment": "production",
    "component": "storage",
    "tags": ["disk", "capacity"]
}

ALERT_RESPONSE_EXAMPLE = {
    "success": True,
    "incidentId": 1042,
    "incidentKey": "ITSM-1042",
    "processingTimeMs": 85,
    "linkedProblemId": 977,
    "enrichment": "found"
}


async def read_body_capped(request: Request, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes so oversized bodies are never buffered whole."""
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            break
    return bytes(body[:limit + 1])


@router.post(
    "/alert",
    summary="Receive a monitoring alert",
    description="""
    Create an Incident from a monitoring alert.

    **Headers:**
    - `Authorization: Bearer <source token>`
    - `X-Webhook-Source: <configured source name>`
    - `X-Webhook-Signature: sha256=<hex HMAC-SHA256 of the raw body>` (optional unless the source requires it)

    The incident is enriched from the CMDB when `ciId` is present (best-effort,
    bounded wait) and linked to the most recent open Problem on the same CI.

    **Errors:** 400 invalid payload, 401 bad or missing credentials,
    403 source or IP not allowed, 500 ticket creation failed.
    """,
    responses={
        200: {
            "description": "Incident created",
            "content": {"application/json": {"example": ALERT_RESPONSE_EXAMPLE}}
        },
        400: {"description": "Invalid payload"},
        401: {"description": "Missing or invalid credentials"},
        403: {"description": "Source or IP not allowed"},
    },
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"example": ALERT_REQUEST_EXAMPLE}},
            "required": True,
        }
    }
)
async def receive_alert(
    request: Request,
    container: ServiceContainer = Depends(get_container)
):
    webhook_config = container.config_provider.get_config().webhook
    raw_body = await read_body_capped(request, webhook_config.max_payload_bytes)
    client_ip = get_client_ip(request, webhook_config.trust_forwarded_headers)

    result = await container.ingestion_service.process(
        raw_body,
        request.headers,
        client_ip=client_ip,
        correlation_id=getattr(request.state, "correlation_id", None),
    )

    if isinstance(result, Err):
        error = result.error
        message = error.message
        if isinstance(error, CreateError) and error.http_status >= 500:
            message = "Failed to create incident"
        return JSONResponse(status_code=error.http_status, content=error_body(message))

    return JSONResponse(status_code=200, content=result.value.to_response())

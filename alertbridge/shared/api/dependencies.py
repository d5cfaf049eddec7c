"""
Shared API Dependencies
=======================

FastAPI dependencies used by every router.
"""

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from alertbridge.container import ServiceContainer
from alertbridge.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def get_container(request: Request) -> ServiceContainer:
    """Service container attached to the application at startup."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized"
        )
    return container


def get_client_ip(request: Request, trust_forwarded_headers: bool = False) -> Optional[str]:
    """
    Caller address.

    X-Forwarded-For / X-Real-IP are only honoured when the deployment says a
    trusted proxy sets them; otherwise the socket peer is used.
    """
    if trust_forwarded_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded and forwarded.strip():
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip and real_ip.strip():
            return real_ip.strip()
    return request.client.host if request.client else None


async def require_operator(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> None:
    """Bearer check for operator endpoints against OPERATOR_API_TOKEN."""
    expected = container.settings.operator_api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operator API is disabled"
        )

    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing operator credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if not hmac.compare_digest(token.strip().encode("utf-8"), expected.encode("utf-8")):
        logger.warning(
            "Rejected operator request",
            extra={
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
                "correlation_id": getattr(request.state, "correlation_id", None),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )

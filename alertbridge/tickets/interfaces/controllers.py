"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for tickets, their CI context and change management.

Controllers are thin - they delegate to application services.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from alertbridge.config import TicketKind
from alertbridge.container import ServiceContainer
from alertbridge.core import Err, TicketNotFoundException
from alertbridge.shared.api.dependencies import get_container, require_operator
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application import (
    ChangeCreatedResponse, ChangeRequest, CloseRelatedResponse, TicketResponse
)
from alertbridge.tickets.domain import Ticket

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets", tags=["Tickets"])


# ========== Example payloads for Swagger ==========

CI_CONTEXT_EXAMPLE = {
    "ciName": "srv-42.dc1.example.com",
    "ciLocation": "DC1 / Rack 12",
    "ciIpAddress": "10.20.30.42",
    "ciOperatingSystem": "Ubuntu 22.04",
    "ciEnvironment": "production",
    "cmdbViewUrl": "https://cmdb.example.com/assets/srv-42"
}

CHANGE_CREATED_EXAMPLE = {
    "success": True,
    "changeId": 1051,
    "changeKey": "ITSM-1051",
    "problemId": 977,
    "linkType": "Implements",
    "linkError": None
}


async def _load_ticket(container: ServiceContainer, ticket_id: int, kind: Optional[TicketKind] = None) -> Ticket:
    ticket = await container.store.get_ticket(ticket_id)
    if ticket is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ticket {ticket_id} not found"
        )
    if kind is not None and ticket.kind != kind:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Ticket {ticket.key} is a {ticket.kind.value}, not a {kind.value}"
        )
    return ticket


# ========== Route Handlers ==========

@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: int,
    container: ServiceContainer = Depends(get_container)
):
    ticket = await _load_ticket(container, ticket_id)
    comments = await container.store.get_comments(ticket_id)
    return TicketResponse.from_domain(ticket, comments)


@router.get(
    "/{ticket_id}/ci-context",
    response_model=Dict[str, Optional[str]],
    summary="Get CI context for a ticket",
    description="""
    CI attributes for the ticket's configuration item, read from the CMDB.

    Never fails because of the CMDB: `ciLocation` degrades to
    `Not found in CMDB`, `CMDB timeout`, `CMDB error` or `CMDB not configured`,
    and a ticket without a CI returns `ciName = "No CI linked"`.
    """,
    responses={
        200: {
            "description": "CI context map",
            "content": {"application/json": {"example": CI_CONTEXT_EXAMPLE}}
        },
        404: {"description": "Ticket not found"}
    }
)
async def get_ci_context(
    ticket_id: int,
    container: ServiceContainer = Depends(get_container)
):
    try:
        return await container.ci_context_service.get_context(ticket_id)
    except TicketNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post(
    "/{problem_id}/change",
    response_model=ChangeCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a Change from a Problem",
    description="""
    Raise a Change for a Problem. The change copies the problem's CI,
    describes the problem, and is linked to it with `Implements` (or
    `Relates` when `Implements` is unavailable). A failed link is reported in
    `linkError`; the change is kept.

    Requires `Authorization: Bearer <operator token>`.
    """,
    responses={
        201: {
            "description": "Change created",
            "content": {"application/json": {"example": CHANGE_CREATED_EXAMPLE}}
        },
        400: {"description": "Ticket is not a Problem, or the change was rejected"},
        401: {"description": "Missing or invalid operator token"},
        404: {"description": "Problem not found"}
    },
    dependencies=[Depends(require_operator)]
)
async def create_change_from_problem(
    problem_id: int,
    change_request: Optional[ChangeRequest] = Body(default=None),
    container: ServiceContainer = Depends(get_container)
):
    problem = await _load_ticket(container, problem_id, TicketKind.PROBLEM)

    created = await container.ticket_service.create_change_from_problem(problem, change_request)
    if isinstance(created, Err):
        raise HTTPException(status_code=created.error.http_status, detail=created.error.message)
    change = created.value

    linked = await container.correlation_service.link_change_to_problem(change.id, problem.id)
    if isinstance(linked, Err):
        logger.warning(
            "Change created without problem link",
            extra={"ticket_id": change.id, "problem_id": problem.id, "error": linked.error.message}
        )
        return ChangeCreatedResponse(
            changeId=change.id,
            changeKey=change.key,
            problemId=problem.id,
            linkError=linked.error.message,
        )

    logger.info(
        "Change created from problem",
        extra={"ticket_id": change.id, "problem_id": problem.id, "link_type": linked.value.value}
    )
    return ChangeCreatedResponse(
        changeId=change.id,
        changeKey=change.key,
        problemId=problem.id,
        linkType=linked.value,
    )


@router.post(
    "/{change_id}/close-related",
    response_model=CloseRelatedResponse,
    summary="Close issues related to a Change",
    description="""
    Close every open Incident or Problem the Change links to (outward links).
    Tickets that are already closed, or of another kind, are reported as
    `skipped`; a failure on one ticket does not stop the others.

    Requires `Authorization: Bearer <operator token>`.
    """,
    responses={
        400: {"description": "Ticket is not a Change"},
        401: {"description": "Missing or invalid operator token"},
        404: {"description": "Change not found"}
    },
    dependencies=[Depends(require_operator)]
)
async def close_related_issues(
    change_id: int,
    container: ServiceContainer = Depends(get_container)
):
    change = await _load_ticket(container, change_id, TicketKind.CHANGE)
    report = await container.correlation_service.close_related_issues(change.id)
    return CloseRelatedResponse(
        changeId=change.id,
        closed=report.closed,
        skipped=report.skipped,
        failed=report.failed,
    )

"""
Escalation Controllers (API Routes)
===================================

Operator endpoints for the SLA escalation sweep.
"""

from fastapi import APIRouter, Depends

from alertbridge.container import ServiceContainer
from alertbridge.shared.api.dependencies import get_container, require_operator

router = APIRouter(prefix="/escalation", tags=["Escalation"])


SWEEP_REPORT_EXAMPLE = {
    "started_at": "2024-01-15T10:00:00+00:00",
    "finished_at": "2024-01-15T10:00:01+00:00",
    "scanned": 42,
    "breaching": 3,
    "escalated": 2,
    "skipped": 1,
    "failures": []
}


@router.post(
    "/sweep",
    summary="Run an escalation sweep now",
    description="""
    Scan open Incidents and Problems and escalate every SLA breach that is not
    yet marked. Safe to call at any time: a breach window already carrying its
    marker label is skipped.

    Requires `Authorization: Bearer <operator token>`.
    """,
    responses={
        200: {
            "description": "Sweep report",
            "content": {"application/json": {"example": SWEEP_REPORT_EXAMPLE}}
        },
        401: {"description": "Missing or invalid operator token"}
    },
    dependencies=[Depends(require_operator)]
)
async def run_sweep(container: ServiceContainer = Depends(get_container)):
    report = await container.escalation_service.run_sweep()
    return report.to_dict()


@router.get(
    "/status",
    summary="Escalation scheduler status",
    dependencies=[Depends(require_operator)]
)
async def get_status(container: ServiceContainer = Depends(get_container)):
    scheduler = container.scheduler
    last_report = container.escalation_service.last_report
    next_run = scheduler.next_run_time
    return {
        "scheduler": "running" if scheduler.is_running else "stopped",
        "interval_seconds": scheduler.interval_seconds,
        "next_run_time": next_run.isoformat() if next_run else None,
        "state": container.escalation_service.state.value,
        "active_sweeps": container.escalation_service.active_sweeps,
        "last_sweep": last_report.to_dict() if last_report else None,
    }

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from check_mem.config import get_settings
from check_mem.models.memory import CheckOptions, MemoryCheckResult
from check_mem.models.quantity import UNIT_LABELS
from check_mem.services import memory_monitor

router = APIRouter()


def _percentage_query():
    return Query(None, ge=0, description="Threshold in percent of total RAM")


def _pair(warning: Optional[float], critical: Optional[float]) -> Optional[dict]:
    if warning is None or critical is None:
        return None
    return {"warning": warning, "critical": critical}


@router.get(
    "/status",
    response_model=MemoryCheckResult,
    summary="Memory check",
)
async def memory_status(
    unit: Optional[int] = Query(
        None,
        ge=0,
        le=len(UNIT_LABELS) - 1,
        description="Power-of-1024 exponent of the perfdata unit",
    ),
    free_warning: Optional[float] = _percentage_query(),
    free_critical: Optional[float] = _percentage_query(),
    used_warning: Optional[float] = _percentage_query(),
    used_critical: Optional[float] = _percentage_query(),
    buffer_warning: Optional[float] = _percentage_query(),
    buffer_critical: Optional[float] = _percentage_query(),
    shared_warning: Optional[float] = _percentage_query(),
    shared_critical: Optional[float] = _percentage_query(),
) -> MemoryCheckResult:
    """
    Run one memory check and return status, reason and the plugin output line.

    As on the command line, a metric's thresholds only apply when both its
    warning and critical parameters are given. If the memory counters cannot
    be read, a HTTP 503 Service Unavailable is returned.
    """
    options = CheckOptions(
        unit_exponent=get_settings().unit_exponent if unit is None else unit,
        free=_pair(free_warning, free_critical),
        used=_pair(used_warning, used_critical),
        buffer=_pair(buffer_warning, buffer_critical),
        shared=_pair(shared_warning, shared_critical),
    )
    try:
        return memory_monitor.run_check(options)
    except memory_monitor.SnapshotError as exc:
        raise HTTPException(
            status_code=503,
            detail=str(exc),
        ) from exc

import logging
from typing import Dict, Optional

import psutil
from pydantic import ValidationError

from check_mem.models.memory import (
    METRICS,
    CheckOptions,
    MemoryCheckResult,
    MemorySnapshot,
)
from check_mem.models.quantity import MeasuredQuantity
from check_mem.services.evaluation import evaluate_memory
from check_mem.services.report import render_report

logger = logging.getLogger(__name__)


class SnapshotError(RuntimeError):
    """Raised when the memory counters cannot be read from the OS."""


def read_memory_snapshot() -> MemorySnapshot:
    """
    Read the current memory counters via psutil.

    psutil reports bytes, so the native unit size is 1. Platforms that do not
    expose shared or buffer memory report 0 for them. Any failure to obtain
    usable counters is raised as SnapshotError.
    """
    try:
        vm = psutil.virtual_memory()
    except (OSError, RuntimeError) as exc:
        raise SnapshotError("psutil.virtual_memory() failed") from exc

    try:
        snapshot = MemorySnapshot(
            total=vm.total,
            free=vm.free,
            shared=getattr(vm, "shared", 0),
            buffer=getattr(vm, "buffers", 0),
            unit_size=1,
        )
    except ValidationError as exc:
        raise SnapshotError(f"unusable memory counters: {exc}") from exc

    logger.debug("memory snapshot: %s", snapshot)
    return snapshot


def build_quantities(
    snapshot: MemorySnapshot, options: CheckOptions
) -> Dict[str, MeasuredQuantity]:
    """
    Turn a snapshot into the four configured quantities.

    Used memory is derived as total - free - shared - buffer. Every quantity
    gets total RAM as its maximum; thresholds are only attached for metrics
    whose warning and critical levels were both supplied.
    """
    used = snapshot.total - snapshot.free - snapshot.shared - snapshot.buffer
    if used < 0:
        logger.warning(
            "inconsistent memory counters (used=%d), clamping to 0", used
        )
        used = 0

    values = {
        "free": snapshot.free,
        "shared": snapshot.shared,
        "buffer": snapshot.buffer,
        "used": used,
    }

    quantities: Dict[str, MeasuredQuantity] = {}
    for metric in METRICS:
        quantity = MeasuredQuantity(value=values[metric]).with_maximum(snapshot.total)
        pair = options.thresholds_for(metric)
        if pair is not None:
            logger.debug(
                "%s thresholds: warning=%s critical=%s",
                metric,
                pair.warning,
                pair.critical,
            )
            quantity = quantity.with_limits(pair.warning, pair.critical)
        quantities[metric] = quantity

    return quantities


def run_check(
    options: CheckOptions, snapshot: Optional[MemorySnapshot] = None
) -> MemoryCheckResult:
    """
    Perform one memory check and return its result.

    The snapshot is read from the OS unless one is passed in.
    """
    if snapshot is None:
        snapshot = read_memory_snapshot()

    quantities = build_quantities(snapshot, options)
    status, reason = evaluate_memory(quantities)

    bytes_per_unit = 1024 ** options.unit_exponent / snapshot.unit_size
    output = render_report(
        status, reason, quantities, bytes_per_unit, options.unit_label
    )

    return MemoryCheckResult(
        status=status.name,
        exit_code=int(status),
        reason=reason,
        output=output,
    )

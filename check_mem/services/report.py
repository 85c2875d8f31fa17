from typing import Mapping

from check_mem.models.memory import PERF_METRICS
from check_mem.models.quantity import MeasuredQuantity, Representation, Status


def render_report(
    status: Status,
    reason: str,
    quantities: Mapping[str, MeasuredQuantity],
    bytes_per_unit: float,
    unit_label: str,
) -> str:
    """
    Render the plugin output line.

    Format: ``<STATUS>: <reason>`` followed by the human-unit perfdata
    blocks and then the percentage blocks for used, free, shared, buffer.
    """
    blocks = []
    for representation in (Representation.HUMAN, Representation.PERCENTAGE):
        for metric in PERF_METRICS:
            block = quantities[metric].perf_block(
                representation, bytes_per_unit, unit_label
            )
            blocks.append(f"'{metric}'={block}")

    return f"{status.name}: {reason}|" + "|".join(blocks)

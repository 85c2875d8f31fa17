from typing import Optional

from pydantic import BaseModel, Field

from check_mem.models.quantity import UNIT_LABELS

# Evaluation order of the aggregator; free memory is the only low-is-bad metric
METRICS = ("free", "shared", "buffer", "used")

# Order of the perfdata blocks in the report line
PERF_METRICS = ("used", "free", "shared", "buffer")


class MemorySnapshot(BaseModel):
    """Memory counters read once from the operating system."""

    total: int = Field(..., gt=0, description="Total RAM in native units")
    free: int = Field(..., ge=0, description="Free RAM in native units")
    shared: int = Field(0, ge=0, description="Shared RAM in native units")
    buffer: int = Field(0, ge=0, description="Buffer RAM in native units")
    unit_size: int = Field(
        1,
        ge=1,
        description="Number of bytes per native unit",
    )


class ThresholdPair(BaseModel):
    warning: float = Field(..., ge=0, description="Warning threshold in percent")
    critical: float = Field(..., ge=0, description="Critical threshold in percent")


class CheckOptions(BaseModel):
    """Validated options record for a single memory check."""

    unit_exponent: int = Field(
        2,
        ge=0,
        le=len(UNIT_LABELS) - 1,
        description="Power-of-1024 exponent of the human-readable unit",
    )
    free: Optional[ThresholdPair] = None
    shared: Optional[ThresholdPair] = None
    buffer: Optional[ThresholdPair] = None
    used: Optional[ThresholdPair] = None

    @property
    def unit_label(self) -> str:
        return UNIT_LABELS[self.unit_exponent]

    def thresholds_for(self, metric: str) -> Optional[ThresholdPair]:
        return getattr(self, metric)


class MemoryCheckResult(BaseModel):
    """Outcome of one memory check, as printed by the CLI or served over HTTP."""

    status: str = Field(..., description="OK, WARNING, CRITICAL or UNKNOWN")
    exit_code: int = Field(..., ge=0, le=3, description="Plugin exit code")
    reason: str = Field(
        "",
        description="Breached threshold, e.g. '96.5% > 95%'; empty when OK",
    )
    output: str = Field(..., description="Status line including perfdata")

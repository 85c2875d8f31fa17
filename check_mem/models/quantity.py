from enum import Enum, IntEnum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Labels for the power-of-1024 unit exponents accepted by --unit
UNIT_LABELS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")


class Status(IntEnum):
    """Plugin status; the numeric value doubles as the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class ValueKind(Enum):
    CURRENT = "current"
    MAXIMUM = "maximum"
    WARNING_THRESHOLD = "warning"
    CRITICAL_THRESHOLD = "critical"


class Representation(Enum):
    RAW = "raw"
    PERCENTAGE = "percentage"
    HUMAN = "human"


class Direction(Enum):
    """Which side of a threshold is considered bad."""

    BELOW_IS_BAD = "<"
    ABOVE_IS_BAD = ">"

    @property
    def comparator(self) -> str:
        return self.value

    def breaches(self, current: float, threshold: float) -> bool:
        if self is Direction.BELOW_IS_BAD:
            return current < threshold
        return current > threshold


class MeasuredQuantity(BaseModel):
    """
    One memory metric taken from a single OS snapshot.

    Instances are immutable. ``with_maximum`` and ``with_limits`` return
    configured copies, so a quantity is built once and then only read while
    the report is evaluated and rendered.
    """

    model_config = ConfigDict(frozen=True)

    value: int = Field(
        ...,
        ge=0,
        description="Raw measurement in native memory units",
    )
    maximum: Optional[int] = Field(
        None,
        gt=0,
        description="Denominator for percentage math (total RAM), if any",
    )
    warning_percentage: Optional[float] = Field(
        None,
        description="Warning threshold in percent of maximum; None disables checks",
    )
    critical_percentage: Optional[float] = Field(
        None,
        description="Critical threshold in percent of maximum; None disables checks",
    )

    def with_maximum(self, maximum: int) -> "MeasuredQuantity":
        return self.model_validate({**self.model_dump(), "maximum": maximum})

    def with_limits(self, warning: float, critical: float) -> "MeasuredQuantity":
        return self.model_validate(
            {
                **self.model_dump(),
                "warning_percentage": warning,
                "critical_percentage": critical,
            }
        )

    @property
    def limits_configured(self) -> bool:
        # A threshold of exactly 0 counts as unset.
        return _is_active(self.warning_percentage) and _is_active(
            self.critical_percentage
        )

    def _require_maximum(self) -> int:
        if self.maximum is None:
            raise ValueError("quantity has no maximum configured")
        return self.maximum

    def raw(self, kind: ValueKind) -> float:
        if kind is ValueKind.CURRENT:
            return self.value
        maximum = self._require_maximum()
        if kind is ValueKind.MAXIMUM:
            return maximum
        percentage = (
            self.warning_percentage
            if kind is ValueKind.WARNING_THRESHOLD
            else self.critical_percentage
        )
        if percentage is None:
            raise ValueError(f"{kind.value} threshold is not configured")
        return percentage / 100.0 * maximum

    def scaled(
        self,
        kind: ValueKind,
        representation: Representation,
        bytes_per_unit: float = 1,
    ) -> float:
        """
        Return ``raw(kind)`` in the requested representation.

        PERCENTAGE is truncated to two decimals, HUMAN to three; neither is
        rounded.
        """
        value = self.raw(kind)
        if representation is Representation.PERCENTAGE:
            return int(10000.0 * value / self._require_maximum()) / 100.0
        if representation is Representation.HUMAN:
            return int(1000.0 * value / bytes_per_unit) / 1000.0
        return value

    @property
    def percentage(self) -> float:
        return self.scaled(ValueKind.CURRENT, Representation.PERCENTAGE)

    def evaluate(self, direction: Direction) -> Tuple[Status, Optional[float]]:
        """
        Compare the current percentage against the configured thresholds.

        Critical is checked before warning. Returns the resulting status
        and the threshold that was breached (None when OK).
        """
        warning = self.warning_percentage
        critical = self.critical_percentage
        if warning is None or critical is None:
            return Status.OK, None

        current = self.percentage
        if _is_active(critical) and direction.breaches(current, critical):
            return Status.CRITICAL, critical
        if _is_active(warning) and direction.breaches(current, warning):
            return Status.WARNING, warning
        return Status.OK, None

    def perf_block(
        self,
        representation: Representation,
        bytes_per_unit: float,
        unit_label: str,
    ) -> str:
        """Render ``value<suffix>;warn;crit;0;max`` for the perfdata suffix."""
        suffix = "%" if representation is Representation.PERCENTAGE else unit_label
        current = self.scaled(ValueKind.CURRENT, representation, bytes_per_unit)
        parts = [f"{current:.6f}{suffix}"]

        if self.limits_configured:
            for kind in (ValueKind.WARNING_THRESHOLD, ValueKind.CRITICAL_THRESHOLD):
                threshold = self.scaled(kind, representation, bytes_per_unit)
                parts.append(f"{threshold:.6f}")
        else:
            parts.extend(["U", "U"])

        parts.append("0")
        maximum = self.scaled(ValueKind.MAXIMUM, representation, bytes_per_unit)
        parts.append(f"{maximum:.6f}")
        return ";".join(parts)


def _is_active(threshold: Optional[float]) -> bool:
    return threshold is not None and threshold > 0

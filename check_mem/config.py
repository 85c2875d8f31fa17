import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

from check_mem.models.quantity import UNIT_LABELS


class Settings(BaseModel):
    unit_exponent: int = Field(
        default=2,
        ge=0,
        le=len(UNIT_LABELS) - 1,
        description="Default power-of-1024 exponent for --unit (2 = MB)",
    )
    log_level: str = Field(
        default="WARNING",
        description="Level for log messages written to stderr",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        # Environment only changes defaults; threshold pairs still need both CLI flags
        values = {}
        raw_unit = os.getenv("CHECK_MEM_UNIT", "").strip()
        if raw_unit:
            values["unit_exponent"] = raw_unit
        raw_level = os.getenv("CHECK_MEM_LOG_LEVEL", "").strip()
        if raw_level:
            values["log_level"] = raw_level
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum
from typing import Optional


class PricePoint(BaseModel):
    """One bar of the input series. Position in the series is its index."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    value: float  # close
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[float] = None


class SwingKind(str, Enum):
    HIGH = "high"
    LOW = "low"

    @property
    def opposite(self) -> "SwingKind":
        return SwingKind.LOW if self is SwingKind.HIGH else SwingKind.HIGH


class BarPoint(BaseModel):
    """A series bar referenced by position."""

    model_config = ConfigDict(frozen=True)

    index: int
    date: datetime
    value: float


class SwingPoint(BarPoint):
    kind: SwingKind

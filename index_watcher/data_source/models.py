"""
Data models for index snapshots.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict


# Percentages are compared after rounding away float noise, so 1.2 - 1.0 counts as 0.2
PERCENT_DECIMALS = 9


def reaches(value: float, limit: float) -> bool:
    """Whether value >= limit, ignoring binary floating point noise."""
    return round(value - limit, PERCENT_DECIMALS) >= 0


def calculate_change_percent(base: float, current: float) -> float:
    """Percent change from base to current, 0 when base is 0."""
    if base == 0:
        return 0.0
    return (current - base) / base * 100


class Snapshot(BaseModel):
    """One point-in-time read of an index's price fields."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    current: float
    open: float
    high: float
    low: float
    previous: float
    change_percent: float
    change_amount: float
    timestamp: datetime

    @classmethod
    def from_prices(
        cls,
        code: str,
        name: str,
        current: float,
        open: float,
        high: float,
        low: float,
        previous: float,
        timestamp: datetime,
    ) -> "Snapshot":
        """Build a snapshot, deriving the change fields from current and previous."""
        return cls(
            code=code,
            name=name,
            current=current,
            open=open,
            high=high,
            low=low,
            previous=previous,
            change_percent=calculate_change_percent(previous, current),
            change_amount=current - previous,
            timestamp=timestamp,
        )

    def is_significant_change(self, threshold: float) -> bool:
        """Whether the move against the previous close reaches the threshold.

        Differences below 1e-9 percentage points are treated as float noise,
        so a move that falls short of the threshold by less than that counts.
        """
        return reaches(abs(self.change_percent), threshold)

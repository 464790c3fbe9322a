"""
Data models for the monitor state machine.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

from ..data_source.models import Snapshot


class MonitorStatus(Enum):
    """Lifecycle of a monitor. STOPPED is terminal."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class TickOutcome(Enum):
    """What a single poll tick ended up doing."""

    FETCH_FAILED = "fetch_failed"
    INITIALIZED = "initialized"
    BELOW_THRESHOLD = "below_threshold"
    OUTSIDE_WINDOW = "outside_window"
    DEDUPLICATED = "deduplicated"
    SENT = "sent"
    SEND_FAILED = "send_failed"


class MonitorState(BaseModel):
    """Comparison baseline and running statistics for one monitored index."""

    model_config = ConfigDict(validate_assignment=True)

    last_snapshot: Optional[Snapshot] = None
    day_open: float = 0.0
    max_change: float = Field(default=0.0, ge=0.0)
    min_change: float = Field(default=0.0, ge=0.0)
    last_alert_time: Optional[datetime] = None
    last_alert_change: float = Field(default=0.0, ge=0.0)

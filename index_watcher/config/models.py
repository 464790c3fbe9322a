"""
Configuration models using Pydantic for validation.
"""

import re
from datetime import datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_INDEX_NAMES: Dict[str, str] = {
    "sh000001": "上证指数",
    "sz399001": "深证成指",
    "sz399006": "创业板指",
}

DEFAULT_THRESHOLD = 0.8
DEFAULT_INTERVAL_SECONDS = 30.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: Any) -> float:
    """
    Convert a duration setting to seconds.

    Accepts plain numbers (seconds) or strings made of ``<n><unit>`` parts,
    e.g. ``"30s"``, ``"1m"``, ``"1h30m"``, ``"500ms"``.

    Raises:
        ValueError: If the value cannot be read as a duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    text = value.strip().lower()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"Invalid duration: {value!r}. Use e.g. 30s, 1m, 1h")
    return seconds


class AlertWindow(BaseModel):
    """Weekly recurring interval in which alerts may be delivered."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    start: time = Field(default=time(14, 30), description="Window start (inclusive)")
    end: time = Field(default=time(15, 0), description="Window end (inclusive)")
    weekdays: List[int] = Field(
        default_factory=lambda: [0, 1, 2, 3, 4],
        description="Allowed weekdays, Monday is 0",
    )

    @field_validator("start", "end", mode="before")
    @classmethod
    def _minutes_to_time(cls, value: Any) -> Any:
        # Unquoted 14:30 in YAML 1.1 is read as the base-60 integer 870
        if isinstance(value, int) and not isinstance(value, bool):
            if not 0 <= value < 24 * 60:
                raise ValueError(f"Invalid time of day: {value}")
            return time(value // 60, value % 60)
        return value

    @field_validator("weekdays")
    @classmethod
    def _check_weekdays(cls, value: List[int]) -> List[int]:
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday must be between 0 and 6, got {day}")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "AlertWindow":
        if self.start > self.end:
            raise ValueError("Alert window start must not be after its end")
        return self

    def contains(self, moment: datetime) -> bool:
        """Check whether a wall-clock moment falls inside the window.

        Comparison is done at minute resolution, so the whole end minute
        (e.g. 15:00:59) still counts as inside.
        """
        if moment.weekday() not in self.weekdays:
            return False
        clock = moment.time().replace(second=0, microsecond=0)
        return self.start <= clock <= self.end


class StockSettings(BaseModel):
    """The monitored index."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    code: str = Field(default="sh000001", description="Quote code, e.g. sh000001")
    name: Optional[str] = Field(default=None, description="Display name")
    threshold: float = Field(
        default=DEFAULT_THRESHOLD,
        gt=0.0,
        allow_inf_nan=False,
        description="Alert threshold in percent against the previous close",
    )

    @field_validator("threshold", mode="before")
    @classmethod
    def _default_threshold(cls, value: Any) -> Any:
        return DEFAULT_THRESHOLD if value is None else value

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().lower()


class WeChatSettings(BaseModel):
    """WeCom group robot delivery settings."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    webhook_url: str = Field(default="", description="Group robot webhook URL")

    @field_validator("webhook_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class MonitorSettings(BaseModel):
    """Polling cadence and delivery window."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    interval: float = Field(
        default=DEFAULT_INTERVAL_SECONDS,
        gt=0.0,
        allow_inf_nan=False,
        description="Seconds between polls",
    )
    alert_window: AlertWindow = Field(default_factory=AlertWindow)

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_INTERVAL_SECONDS
        return parse_duration(value)


class WatcherConfig(BaseModel):
    """Top-level configuration document."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    stock: StockSettings = Field(default_factory=StockSettings)
    wechat: WeChatSettings = Field(default_factory=WeChatSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    index_names: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra code to display name entries, merged over the built-in table",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_sections(cls, data: Any) -> Any:
        # A section header with nothing under it loads as None
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @property
    def names(self) -> Dict[str, str]:
        """Code to display name table with configured entries applied."""
        merged = dict(DEFAULT_INDEX_NAMES)
        merged.update({code.lower(): name for code, name in self.index_names.items()})
        return merged

    @property
    def display_name(self) -> str:
        """Name used in logs and alerts for the monitored index."""
        if self.stock.name:
            return self.stock.name
        return self.names.get(self.stock.code, self.stock.code)

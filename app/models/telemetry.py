import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NUMERIC = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_value(raw: Any) -> Optional[float]:
    """Parse a raw body value to float; anything non-numeric is absent (None)."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        if not NUMERIC.fullmatch(raw.strip()):
            return None
        value = float(raw)
    else:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


class TelemetryRecord(BaseModel):
    timestamp: datetime
    source: str
    body: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    def has_parameter(self, parameter: str) -> bool:
        return parameter in self.body


class TimeWindow(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _ordered(self) -> "TimeWindow":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def span(self):
        return self.end - self.start

    def padded(self) -> "TimeWindow":
        """Extend by one span on each side."""
        span = self.span
        return TimeWindow(start=self.start - span, end=self.end + span)


class SeriesPoint(BaseModel):
    timestamp: datetime
    value: float


def parameter_series(
    records: Iterable[TelemetryRecord], parameter: str
) -> Iterator[SeriesPoint]:
    for record in records:
        value = parse_value(record.body.get(parameter))
        if value is None:
            continue
        yield SeriesPoint(timestamp=record.timestamp, value=value)


@dataclass
class SeriesResult:
    data: Iterator[SeriesPoint]
    suggested_range: Optional[TimeWindow] = None


class DetailPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    body: dict[str, float] = Field(alias="Body")


class DetailsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[DetailPoint]
    suggested_range: Optional[TimeWindow] = Field(
        default=None, alias="suggestedRange"
    )

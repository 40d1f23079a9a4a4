from typing import Optional

from pydantic import BaseModel, Field

from app.models.telemetry import SeriesPoint, TimeWindow

AXIS_PADDING = 0.1

ZOOM_IN_FACTOR = 0.3
ZOOM_OUT_FACTOR = 3.0
PAN_FRACTION = 0.3


def value_bounds(points: list[SeriesPoint]) -> Optional[tuple[float, float]]:
    values = [p.value for p in points if p.value is not None]
    if not values:
        return None
    low, high = min(values), max(values)
    padding = (high - low) * AXIS_PADDING
    return low - padding, high + padding


class ChartState(BaseModel):
    """What one mounted chart currently shows."""

    source: str
    parameter: str
    window: Optional[TimeWindow] = None
    series: list[SeriesPoint] = Field(default_factory=list)
    y_min: Optional[float] = None
    y_max: Optional[float] = None

    def replace_series(self, window: TimeWindow, points: list[SeriesPoint]) -> None:
        self.series = points
        self.window = window
        bounds = value_bounds(points)
        if bounds is not None:
            self.y_min, self.y_max = bounds

    def _shown(self) -> TimeWindow:
        if self.window is None:
            raise ValueError(
                f"Chart {self.source}/{self.parameter} has no time window yet"
            )
        return self.window

    def zoomed(self, factor: float) -> TimeWindow:
        window = self._shown()
        center = window.start + window.span / 2
        half = window.span * factor / 2
        return TimeWindow(start=center - half, end=center + half)

    def panned(self, fraction: float) -> TimeWindow:
        window = self._shown()
        move = window.span * fraction
        return TimeWindow(start=window.start + move, end=window.end + move)

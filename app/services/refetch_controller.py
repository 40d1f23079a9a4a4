import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

from app.config.settings import get_settings
from app.core.scheduler import ScheduledTask, Scheduler
from app.models.chart import (
    PAN_FRACTION,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
    ChartState,
)
from app.models.telemetry import SeriesResult, TimeWindow

logger = logging.getLogger(__name__)

FetchSeries = Callable[[str, str, Optional[TimeWindow]], Awaitable[SeriesResult]]


class RefetchState(str, Enum):
    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    QUERYING = "querying"


class RefetchController:
    """Debounced refetching for one chart as the user pans and zooms.

    Requests arriving within ``debounce_seconds`` of each other collapse into
    a single fetch for the last requested range. Fetches already running are
    never cancelled, so with overlapping fetches the one completing last is
    applied. With ``discard_stale`` set, results of fetches superseded by a
    later fired fetch are dropped instead.
    """

    def __init__(
        self,
        chart: ChartState,
        fetch: FetchSeries,
        scheduler: Optional[Scheduler] = None,
        debounce_seconds: Optional[float] = None,
        discard_stale: bool = False,
    ):
        self.chart = chart
        self.fetch = fetch
        self.scheduler = scheduler or Scheduler()
        if debounce_seconds is None:
            debounce_seconds = get_settings().refetch_debounce_seconds
        self.debounce_seconds = debounce_seconds
        self.discard_stale = discard_stale

        self._pending: Optional[ScheduledTask] = None
        self._handles: list[ScheduledTask] = []
        self._in_flight = 0
        self._sequence = 0
        self._latest_fired = 0

    @property
    def state(self) -> RefetchState:
        if self._pending is not None and self._pending.pending:
            return RefetchState.PENDING_DEBOUNCE
        if self._in_flight:
            return RefetchState.QUERYING
        return RefetchState.IDLE

    async def load(self) -> None:
        """Initial fetch; the chart opens on the suggested range.

        Without a suggested range the window spans the returned points.
        """
        result = await self.fetch(self.chart.source, self.chart.parameter, None)
        self.chart.series = list(result.data)
        if result.suggested_range is not None:
            self.chart.window = result.suggested_range
        elif self.chart.series:
            self.chart.window = TimeWindow(
                start=self.chart.series[0].timestamp,
                end=self.chart.series[-1].timestamp,
            )

    def request_range(self, start: datetime, end: datetime) -> ScheduledTask:
        window = TimeWindow(start=start, end=end)

        if self._pending is not None:
            self._pending.cancel()

        self._handles = [h for h in self._handles if h.pending or h.running]
        self._pending = self.scheduler.schedule(
            self.debounce_seconds, lambda: self._refetch(window)
        )
        self._handles.append(self._pending)
        return self._pending

    async def _refetch(self, window: TimeWindow) -> None:
        self._sequence += 1
        sequence = self._sequence
        self._latest_fired = sequence
        self._in_flight += 1

        try:
            result = await self.fetch(self.chart.source, self.chart.parameter, window)
            points = list(result.data)
        except Exception as e:
            logger.error(
                f"Refetch of {self.chart.source}/{self.chart.parameter} failed: {e}",
                exc_info=True,
            )
            return
        finally:
            self._in_flight -= 1

        if self.discard_stale and sequence != self._latest_fired:
            logger.debug(f"Dropping stale refetch #{sequence}")
            return

        self.chart.replace_series(window, points)

    async def wait_idle(self) -> None:
        while self._handles:
            handles, self._handles = self._handles, []
            await asyncio.gather(
                *(h.task for h in handles if h.task is not None),
                return_exceptions=True,
            )

    def _move_to(self, window: TimeWindow) -> ScheduledTask:
        self.chart.window = window
        return self.request_range(window.start, window.end)

    def zoom_in(self) -> ScheduledTask:
        return self._move_to(self.chart.zoomed(ZOOM_IN_FACTOR))

    def zoom_out(self) -> ScheduledTask:
        return self._move_to(self.chart.zoomed(ZOOM_OUT_FACTOR))

    def pan_left(self) -> ScheduledTask:
        return self._move_to(self.chart.panned(-PAN_FRACTION))

    def pan_right(self) -> ScheduledTask:
        return self._move_to(self.chart.panned(PAN_FRACTION))

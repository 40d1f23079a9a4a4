import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.config.settings import get_settings
from app.core.exceptions import ValidationFailed
from app.models.telemetry import (
    SeriesResult,
    TimeWindow,
    as_utc,
    parameter_series,
)
from app.storage.record_store import get_record_store

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_window(
    start_time: Optional[str], end_time: Optional[str]
) -> Optional[TimeWindow]:
    """Build a window from ISO query parameters; both or neither must be given."""
    if not start_time and not end_time:
        return None
    if not start_time or not end_time:
        raise ValidationFailed("startTime and endTime must be provided together")

    try:
        start = as_utc(datetime.fromisoformat(start_time))
        end = as_utc(datetime.fromisoformat(end_time))
    except ValueError as e:
        raise ValidationFailed("Invalid date format provided") from e

    if start > end:
        raise ValidationFailed("startTime must not be after endTime")
    return TimeWindow(start=start, end=end)


class SeriesService:
    """Decides which time window to query for a device parameter.

    Without a window the last ``initial_lookback_days`` are fetched (bounded
    count) and, for sparse devices, widened to the most recent records of all
    time. With a window, the window is padded by its own span on each side
    so small pans stay inside already fetched data.
    """

    def __init__(self, store=None, clock: Callable[[], datetime] = utc_now):
        self.store = store or get_record_store()
        self.settings = get_settings()
        self.clock = clock

    async def fetch_series(
        self, source: str, parameter: str, window: Optional[TimeWindow] = None
    ) -> SeriesResult:
        if window is None:
            return await self._initial_load(source, parameter)
        return await self._refine(source, parameter, window)

    async def _initial_load(self, source: str, parameter: str) -> SeriesResult:
        now = self.clock()
        lookback_start = now - timedelta(days=self.settings.initial_lookback_days)

        records = await self.store.query(
            source,
            parameter,
            start=lookback_start,
            limit=self.settings.initial_point_limit,
            descending=True,
        )

        if len(records) >= self.settings.sparse_threshold:
            records.reverse()
            suggested = TimeWindow(
                start=now - timedelta(days=self.settings.suggested_view_days),
                end=now,
            )
            return SeriesResult(
                data=parameter_series(records, parameter), suggested_range=suggested
            )

        logger.info(
            f"{source}/{parameter}: {len(records)} records in last "
            f"{self.settings.initial_lookback_days} days, falling back to latest "
            f"{self.settings.fallback_point_limit}"
        )
        records = await self.store.query(
            source,
            parameter,
            limit=self.settings.fallback_point_limit,
            descending=True,
        )

        if not records:
            return SeriesResult(
                data=iter(()), suggested_range=TimeWindow(start=now, end=now)
            )

        records.reverse()
        suggested = TimeWindow(start=records[0].timestamp, end=records[-1].timestamp)
        return SeriesResult(
            data=parameter_series(records, parameter), suggested_range=suggested
        )

    async def _refine(
        self, source: str, parameter: str, window: TimeWindow
    ) -> SeriesResult:
        padded = window.padded()
        records = await self.store.query(
            source, parameter, start=padded.start, end=padded.end
        )
        return SeriesResult(data=parameter_series(records, parameter))


_service = SeriesService()


def get_series_service() -> SeriesService:
    return _service

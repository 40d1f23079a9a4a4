import logging
from datetime import datetime
from typing import AsyncIterator, Optional

from redis.exceptions import RedisError

from app.config.settings import get_settings
from app.core.exceptions import StoreQueryFailed
from app.core.redis_client import get_redis_client
from app.models.telemetry import TelemetryRecord

logger = logging.getLogger(__name__)

RECORD_KEY_PREFIX = "telemetry:records:"


def record_key(source: str) -> str:
    return f"{RECORD_KEY_PREFIX}{source}"


class RecordStore:
    def __init__(self):
        self.redis = None
        self.settings = get_settings()

    async def initialize(self):
        if not self.redis:
            self.redis = await get_redis_client()

    async def save_record(self, record: TelemetryRecord) -> None:
        await self.initialize()
        try:
            await self.redis.zadd(
                record_key(record.source),
                {record.model_dump_json(): record.timestamp.timestamp()},
            )
        except RedisError as e:
            raise StoreQueryFailed(f"Failed to save record for {record.source}: {e}") from e

    async def save_batch(self, records: list[TelemetryRecord]) -> None:
        await self.initialize()
        try:
            async with self.redis.pipeline() as pipe:
                for record in records:
                    pipe.zadd(
                        record_key(record.source),
                        {record.model_dump_json(): record.timestamp.timestamp()},
                    )
                await pipe.execute()
        except RedisError as e:
            raise StoreQueryFailed(f"Failed to save batch: {e}") from e

    async def query(
        self,
        source: str,
        parameter: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
        descending: bool = False,
    ) -> list[TelemetryRecord]:
        """Records of ``source`` carrying ``parameter``, ordered by timestamp.

        The sorted set is read page by page so that a ``limit`` applies to
        records that actually carry the parameter.
        """
        await self.initialize()

        key = record_key(source)
        min_score = start.timestamp() if start else "-inf"
        max_score = end.timestamp() if end else "+inf"
        page_size = self.settings.store_page_size

        logger.debug(
            f"Querying {key} parameter={parameter} range=({min_score}, {max_score}) "
            f"limit={limit} descending={descending}"
        )

        records = []
        offset = 0
        try:
            while limit is None or len(records) < limit:
                if descending:
                    page = await self.redis.zrevrangebyscore(
                        key, max_score, min_score, start=offset, num=page_size
                    )
                else:
                    page = await self.redis.zrangebyscore(
                        key, min_score, max_score, start=offset, num=page_size
                    )
                for raw in page:
                    record = TelemetryRecord.model_validate_json(raw)
                    if record.has_parameter(parameter):
                        records.append(record)
                if len(page) < page_size:
                    break
                offset += page_size
        except RedisError as e:
            raise StoreQueryFailed(f"Query on {source}/{parameter} failed: {e}") from e

        if limit is not None:
            records = records[:limit]
        return records

    async def iter_records(self, source: str) -> AsyncIterator[TelemetryRecord]:
        await self.initialize()
        try:
            async for raw, _score in self.redis.zscan_iter(
                record_key(source), count=self.settings.store_page_size
            ):
                yield TelemetryRecord.model_validate_json(raw)
        except RedisError as e:
            raise StoreQueryFailed(f"Scan of {source} failed: {e}") from e

    async def list_sources(self) -> list[str]:
        await self.initialize()
        sources = set()
        try:
            async for key in self.redis.scan_iter(
                match=f"{RECORD_KEY_PREFIX}*", count=self.settings.store_page_size
            ):
                sources.add(key.decode()[len(RECORD_KEY_PREFIX):])
        except RedisError as e:
            raise StoreQueryFailed(f"Listing sources failed: {e}") from e
        return sorted(sources)


_store = RecordStore()


def get_record_store() -> RecordStore:
    return _store

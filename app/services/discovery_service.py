import logging

from app.config.settings import get_settings
from app.storage.record_store import get_record_store

logger = logging.getLogger(__name__)


class DiscoveryService:
    def __init__(self, store=None):
        self.store = store or get_record_store()
        self.settings = get_settings()

    async def list_devices(self) -> list[str]:
        devices = await self.store.list_sources()
        logger.info(f"Found {len(devices)} devices")
        return devices

    async def list_parameters(self, source: str) -> list[str]:
        reserved = set(self.settings.reserved_body_keys)
        parameters = set()

        async for record in self.store.iter_records(source):
            parameters.update(key for key in record.body if key not in reserved)

        logger.info(f"Found {len(parameters)} parameters for {source}")
        return sorted(parameters)

    async def list_months(self, source: str) -> list[str]:
        months = set()
        async for record in self.store.iter_records(source):
            months.add(record.timestamp.strftime("%Y-%m"))
        return sorted(months, reverse=True)


_service = DiscoveryService()


def get_discovery_service() -> DiscoveryService:
    return _service

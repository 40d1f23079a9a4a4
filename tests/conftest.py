import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import StoreQueryFailed
from app.main import app
from app.models.telemetry import TelemetryRecord
from app.services import discovery_service, series_service, user_service
from app.services.discovery_service import DiscoveryService
from app.services.series_service import SeriesService
from app.services.user_service import UserService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryRecordStore:
    """Record store double that keeps every query it receives."""

    def __init__(self):
        self.records: list[TelemetryRecord] = []
        self.calls: list[dict] = []
        self.fail = False

    def add(self, source: str, timestamp: datetime, **body) -> TelemetryRecord:
        record = TelemetryRecord(timestamp=timestamp, source=source, body=body)
        self.records.append(record)
        return record

    def _check(self):
        if self.fail:
            raise StoreQueryFailed("store unreachable")

    async def query(
        self, source, parameter, start=None, end=None, limit=None, descending=False
    ):
        self.calls.append(
            {
                "source": source,
                "parameter": parameter,
                "start": start,
                "end": end,
                "limit": limit,
                "descending": descending,
            }
        )
        self._check()
        matches = [
            r
            for r in self.records
            if r.source == source
            and r.has_parameter(parameter)
            and (start is None or r.timestamp >= start)
            and (end is None or r.timestamp <= end)
        ]
        matches.sort(key=lambda r: r.timestamp, reverse=descending)
        return matches[:limit] if limit is not None else matches

    async def iter_records(self, source):
        self._check()
        for record in list(self.records):
            if record.source == source:
                yield record

    async def list_sources(self):
        self._check()
        return sorted({r.source for r in self.records})


class InMemoryUserStore:
    def __init__(self):
        self.users = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise StoreQueryFailed("store unreachable")

    async def save_user(self, user):
        self._check()
        self.users[user.id] = user

    async def get_user(self, user_id):
        self._check()
        return self.users.get(user_id)

    async def find_by_auth(self, auth_type, auth_id):
        self._check()
        for user in self.users.values():
            for method in user.auth_methods:
                if method.type == auth_type and method.id == auth_id:
                    return user
        return None

    async def add_auth_method(self, user, method):
        user.auth_methods.append(method)
        await self.save_user(user)
        return user


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def series(record_store, now):
    return SeriesService(store=record_store, clock=lambda: now)


@pytest.fixture
def services(monkeypatch, record_store, user_store, series):
    monkeypatch.setattr(series_service, "_service", series)
    monkeypatch.setattr(
        discovery_service, "_service", DiscoveryService(store=record_store)
    )
    monkeypatch.setattr(user_service, "_service", UserService(store=user_store))


@pytest.fixture
def client(services):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unique_id():
    return uuid.uuid4().hex[:8]

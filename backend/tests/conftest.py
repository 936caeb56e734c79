"""Shared fixtures: snapshot builders, in-memory database, fake Redis, API client."""

import fnmatch
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from practice_booking.database import init_db, make_engine
from practice_booking.models.generated import (
    Providers,
    ProviderSchedules,
    Services,
    Tenants,
    t_provider_services,
)
from practice_booking.services.slots.config import BookingConfig
from practice_booking.services.slots.entities import (
    Booking,
    BookingStatus,
    DayHours,
    Provider,
    ScheduleSnapshot,
    Service,
    WorkingWindow,
)

TENANT_ID = 1
MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)
# Early Monday morning, before any slot of the day
MONDAY_MORNING = datetime(2026, 10, 19, 7, 0)

CLEANING = Service(id=10, name="Cleaning", duration_minutes=30, tenant_id=TENANT_ID)
CHECKUP = Service(id=11, name="Checkup", duration_minutes=60, tenant_id=TENANT_ID)


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.ops = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        return [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.ops]


class FakeRedis:
    """In-process stand-in for the few Redis commands the service uses."""

    def __init__(self):
        self.zsets: dict[str, dict[str, float]] = {}
        self.lists: dict[str, list[str]] = {}
        self.expiry: dict[str, int] = {}

    def ping(self):
        return True

    def pipeline(self):
        return FakePipeline(self)

    def exists(self, key):
        return int(key in self.zsets or key in self.lists)

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.zsets.pop(key, None) is not None or self.lists.pop(key, None) is not None:
                deleted += 1
            self.expiry.pop(key, None)
        return deleted

    def keys(self, pattern):
        return [k for k in list(self.zsets) + list(self.lists) if fnmatch.fnmatch(k, pattern)]

    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def _sorted(self, key):
        return sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))

    def zrangebyscore(self, key, low, high, withscores=False):
        low, high = float(low), float(high)
        selected = [(m, s) for m, s in self._sorted(key) if low <= s <= high]
        return selected if withscores else [m for m, _ in selected]

    def zrange(self, key, start, end):
        members = [m for m, _ in self._sorted(key)]
        return members[start:] if end == -1 else members[start:end + 1]

    def zrem(self, key, *members):
        zset = self.zsets.get(key, {})
        removed = sum(1 for m in members if zset.pop(m, None) is not None)
        if key in self.zsets and not zset:
            self.delete(key)
        return removed

    def zremrangebyscore(self, key, low, high):
        low, high = float(low), float(high)
        stale = [m for m, s in self.zsets.get(key, {}).items() if low <= s <= high]
        return self.zrem(key, *stale)

    def expireat(self, key, when):
        self.expiry[key] = when
        return True

    def expire(self, key, seconds):
        self.expiry[key] = seconds
        return True

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture(autouse=True)
def event_redis(monkeypatch):
    """Route notification events to an in-memory queue."""
    fake = FakeRedis()
    monkeypatch.setattr("practice_booking.services.events.redis_client", fake)
    return fake


def weekday_window(provider_id, start, end, weekdays=range(7)):
    return tuple(
        WorkingWindow(provider_id=provider_id, day_of_week=d, start_minute=start, end_minute=end)
        for d in weekdays
    )


def make_snapshot(
    providers=None,
    qualifications=None,
    windows=None,
    bookings=(),
    operating_hours=None,
    duration_map=None,
    services=(CLEANING, CHECKUP),
):
    """Snapshot with one provider (id 1) working 09:00-17:00 every day by default."""
    if providers is None:
        providers = (Provider(id=1, tenant_id=TENANT_ID, name="Dr. Adams"),)
    if qualifications is None:
        qualifications = tuple((p.id, s.id) for p in providers for s in services)
    if windows is None:
        windows = tuple(w for p in providers for w in weekday_window(p.id, 9 * 60, 17 * 60))
    return ScheduleSnapshot(
        tenant_id=TENANT_ID,
        services=tuple(services),
        providers=tuple(providers),
        qualifications=tuple(qualifications),
        windows=tuple(windows),
        bookings=tuple(bookings),
        operating_hours=operating_hours,
        duration_map=duration_map or {},
    )


def make_booking(
    id,
    start_minute,
    provider_id=1,
    on=MONDAY,
    duration=None,
    status=BookingStatus.CONFIRMED,
    service_type="Cleaning",
    notes=None,
    deleted_at=None,
):
    return Booking(
        id=id,
        tenant_id=TENANT_ID,
        provider_id=provider_id,
        date=on,
        start_minute=start_minute,
        status=status,
        service_type=service_type,
        duration_minutes=duration,
        notes=notes,
        deleted_at=deleted_at,
    )


def all_days_open(start_hour=9, end_hour=17):
    names = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
    return {name: DayHours(enabled=True, start_hour=start_hour, end_hour=end_hour) for name in names}


# ── Database / API ───────────────────────────────────────────────────────


@pytest.fixture
def db_session():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def seed_practice(db, provider_count=1, start_time="09:00", end_time="17:00"):
    """Tenant 1 with Cleaning (30 min) and providers working every day."""
    db.add(Tenants(id=TENANT_ID, name="Smile Dental", slug="smile-dental"))
    service = Services(tenant_id=TENANT_ID, name="Cleaning", duration_minutes=30)
    unstaffed = Services(tenant_id=TENANT_ID, name="Implant", duration_minutes=90)
    db.add_all([service, unstaffed])
    db.flush()

    providers = []
    for i in range(provider_count):
        provider = Providers(tenant_id=TENANT_ID, name=f"Dr. {chr(ord('A') + i)}")
        db.add(provider)
        db.flush()
        providers.append(provider)
        for day in range(7):
            db.add(ProviderSchedules(
                provider_id=provider.id,
                day_of_week=day,
                start_time=start_time,
                end_time=end_time,
            ))
        db.execute(t_provider_services.insert().values(
            provider_id=provider.id, service_id=service.id
        ))
    db.commit()
    return {
        "service_id": service.id,
        "unstaffed_service_id": unstaffed.id,
        "provider_ids": [p.id for p in providers],
    }


@pytest.fixture
def client(db_session):
    from practice_booking.database import get_db
    from practice_booking.main import app
    from practice_booking.redis_client import get_slots_redis

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_slots_redis] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

import fnmatch
import threading
from datetime import date

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from tutorslots.config import Settings
from tutorslots.database import create_db_engine, create_session_factory, init_db
from tutorslots.main import create_app
from tutorslots.models.tables import Users as DBUsers
from tutorslots.services.slots.config import SlotsConfig
from tutorslots.services.slots.domain import DAY_NAMES, DayWindow
from tutorslots.services.stores import AvailabilityStore

TEACHER_TZ = "Asia/Kolkata"
# A Monday well inside any publish horizon when "today" is pinned to the day before
TARGET_DATE = date(2031, 3, 3)
TODAY = date(2031, 3, 2)


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the service uses."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttl: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self.store.get(key)

    def set(self, key, value, nx=False, ex=None):
        with self._lock:
            if nx and key in self.store:
                return None
            self.store[key] = value
            if ex is not None:
                self.ttl[key] = ex
            return True

    def delete(self, *keys):
        with self._lock:
            removed = 0
            for key in keys:
                if self.store.pop(key, None) is not None:
                    removed += 1
                self.ttl.pop(key, None)
            return removed

    def scan_iter(self, match="*", count=None):
        with self._lock:
            keys = [k for k in self.store if fnmatch.fnmatchcase(k, match)]
        yield from keys

    def eval(self, script, numkeys, key, token):
        # Only the compare-and-delete release script is ever sent
        with self._lock:
            if self.store.get(key) == token:
                del self.store[key]
                self.ttl.pop(key, None)
                return 1
            return 0

    def ping(self):
        return True

    def close(self):
        pass

    def keys_like(self, pattern):
        return sorted(k for k in self.store if fnmatch.fnmatchcase(k, pattern))


class BrokenRedis:
    """Every command fails as if the server were gone."""

    def _down(self, *args, **kwargs):
        raise RedisConnectionError("redis down")

    get = set = delete = eval = ping = _down

    def scan_iter(self, *args, **kwargs):
        raise RedisConnectionError("redis down")

    def close(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return BrokenRedis()


@pytest.fixture
def slots_config():
    return SlotsConfig(cache_ttl_seconds=600, lock_ttl_seconds=10)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'tutorslots.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def make_user(db, role, name, teacher_id=None, timezone=None):
    user = DBUsers(name=name, role=role, teacher_id=teacher_id, timezone=timezone)
    db.add(user)
    db.commit()
    return user


def open_every_day(db, teacher_id, start="09:00", end="17:00"):
    AvailabilityStore(db).save_weekly_availability(
        teacher_id, [DayWindow(day, start, end) for day in DAY_NAMES]
    )


@pytest.fixture
def teacher(db):
    user = make_user(db, "teacher", "Asha", timezone=TEACHER_TZ)
    open_every_day(db, user.id)
    return user


@pytest.fixture
def student(db, teacher):
    return make_user(db, "student", "Ravi", teacher_id=teacher.id, timezone=TEACHER_TZ)


@pytest.fixture
def other_student(db, teacher):
    return make_user(db, "student", "Meera", teacher_id=teacher.id, timezone="Europe/London")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'unused.db'}",
        default_timezone=TEACHER_TZ,
        _env_file=None,
    )


@pytest.fixture
def client(settings, fake_redis, session_factory):
    app = create_app(settings=settings, redis=fake_redis, session_factory=session_factory)
    with TestClient(app) as test_client:
        yield test_client


def auth(user):
    return {"X-User-Id": str(user.id)}

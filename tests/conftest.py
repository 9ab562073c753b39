import os

# must be set before duroos.config is imported
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017/duroos_test")
os.environ.setdefault("JWT_SECRET", "test-secret-that-is-at-least-32-characters-long")
os.environ.setdefault("AUDIO_PUBLIC_BASE_URL", "https://audio.example.com/bucket")

from datetime import datetime, timedelta
import itertools
import mongomock
import pytest
from fastapi.testclient import TestClient

from duroos.auth.jwt import create_access_token
from duroos.main import app
from duroos.services.memory_cache import TTLCache

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)
_counter = itertools.count()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def db():
    return mongomock.MongoClient().get_database("duroos_test")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    c = TTLCache(clock=clock, active_eviction=False)
    yield c
    c.clear()


@pytest.fixture
def client(db, cache):
    app.state.db = db
    app.state.cache = cache
    return TestClient(app)


def _tick(minutes: int = 0) -> datetime:
    # monotonically increasing creation times unless a test overrides them
    return BASE_TIME + timedelta(minutes=minutes or next(_counter))


def make_sheikh(db, **fields):
    doc = {"nameArabic": "الشيخ حسن", "nameEnglish": "Sheikh Hasan", "slug": None, "createdAt": _tick(), **fields}
    if doc["slug"] is None:
        doc.pop("slug")
    doc["_id"] = db.sheikhs.insert_one(doc).inserted_id
    return doc


def make_series(db, sheikh, **fields):
    doc = {
        "titleArabic": f"سلسلة {next(_counter)}",
        "titleEnglish": "",
        "sheikhId": sheikh["_id"],
        "category": "Other",
        "tags": [],
        "isVisible": True,
        "createdAt": _tick(),
        **fields,
    }
    doc["_id"] = db.series.insert_one(doc).inserted_id
    return doc


def make_lecture(db, sheikh, series=None, **fields):
    doc = {
        "titleArabic": f"درس {next(_counter)}",
        "titleEnglish": "",
        "sheikhId": sheikh["_id"],
        "seriesId": series["_id"] if series else None,
        "category": "Other",
        "published": True,
        "featured": False,
        "playCount": 0,
        "downloadCount": 0,
        "duration": 0,
        "createdAt": _tick(),
        **fields,
    }
    doc["_id"] = db.lectures.insert_one(doc).inserted_id
    return doc


def make_admin(db, role="admin", is_active=True):
    doc = {"email": f"{role}{next(_counter)}@example.com", "role": role, "isActive": is_active}
    doc["_id"] = db.admins.insert_one(doc).inserted_id
    return doc


def auth_header(admin):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(admin['_id'])})}"}

import asyncio

from pymongo.errors import ServerSelectionTimeoutError

from duroos.main import app
from duroos.services.cache_keys import homepage_overview_key, homepage_schedule_key, homepage_sections_key
from duroos.tasks.scheduler import create_scheduler, refresh_site_stats, schedule_jobs, warm_homepage_cache

from conftest import make_lecture, make_sheikh


class UnreachableDatabase:
    def command(self, name):
        raise ServerSelectionTimeoutError("no servers")


def test_health_reports_unreachable_database(client):
    app.state.db = UnreachableDatabase()
    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "unhealthy"


def test_jobs_are_registered(db, cache):
    scheduler = create_scheduler()
    schedule_jobs(scheduler, db, cache)
    assert {job.id for job in scheduler.get_jobs()} == {"refresh_site_stats", "warm_homepage_cache"}


def test_warm_homepage_cache_fills_every_widget(db, cache):
    make_lecture(db, make_sheikh(db))
    asyncio.run(warm_homepage_cache(db, cache))
    for key in (homepage_overview_key(), homepage_sections_key(), homepage_schedule_key()):
        assert cache.has(key)
    assert cache.get(homepage_overview_key())["stats"]["totalLectures"] == 1


def test_refresh_site_stats_writes_cached_totals(db):
    make_lecture(db, make_sheikh(db), playCount=7)
    asyncio.run(refresh_site_stats(db))
    doc = db.site_settings.find_one({"key": "global"})
    assert doc["cachedStats"]["totalPlays"] == 7

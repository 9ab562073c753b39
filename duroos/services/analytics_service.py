from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from duroos.repos import lectures as lectures_repo
from duroos.repos import page_views as page_views_repo
from duroos.repos import series as series_repo
from duroos.repos import sheikhs as sheikhs_repo
from duroos.repos import site_settings as settings_repo
from duroos.repos.helper import serialize
from duroos.services.cache_keys import public_stats_key
from duroos.services.memory_cache import TTLCache

PUBLIC_STATS_TTL = 60 * 10

# ---------------------------
# Page classification
# ---------------------------

# public read endpoints a visitor's page load maps to
TRACKED_COLLECTIONS = (
    ("/api/lectures", "lecture", lectures_repo),
    ("/api/series", "series", series_repo),
    ("/api/sheikhs", "sheikh", sheikhs_repo),
)

def classify_page(path: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Map a request path to ``(page_type, resource_key)``.

    Returns None for anything that is not a page view: homepage tab
    fetches, sub-actions such as ``/play``, admin and unknown routes.
    """
    path = path.rstrip("/") or "/"
    if path == "/api/homepage":
        return "homepage", None
    for prefix, page_type, _ in TRACKED_COLLECTIONS:
        if path == prefix:
            return page_type, None
        if path.startswith(prefix + "/"):
            key = path[len(prefix) + 1:]
            return (page_type, key) if "/" not in key else None
    return None

def record_page_view(db: Database, path: str, page_type: str, key: Optional[str] = None) -> None:
    resource_id = None
    if key:
        repo = next(r for _, t, r in TRACKED_COLLECTIONS if t == page_type)
        doc = repo.get_by_id_or_slug(db, key)
        resource_id = doc["_id"] if doc else None
    page_views_repo.record_view(db, path, page_type, resource_id)

# ---------------------------
# Admin dashboard
# ---------------------------

def _summary(db: Database) -> Dict[str, Any]:
    site = settings_repo.get_settings(db)
    totals = lectures_repo.totals(db)
    analytics = site["analytics"]
    return {
        "pageViews": page_views_repo.get_summary(db),
        "lectures": {
            "total": totals["count"],
            "totalPlays": totals["totalPlays"],
            "totalDownloads": totals["totalDownloads"],
        },
        "settings": {
            "showPublicStats": analytics["showPublicStats"],
            "thresholds": {
                "plays": analytics["minPlaysToDisplay"],
                "downloads": analytics["minDownloadsToDisplay"],
                "pageViews": analytics["minPageViewsToDisplay"],
            },
        },
        "cachedStats": site["cachedStats"],
        "shouldShowPublic": settings_repo.should_show_public_stats(site),
    }

async def summary(db: Database) -> Dict[str, Any]:
    return serialize(await run_in_threadpool(_summary, db))

async def top_lectures(db: Database, by: str = "plays", limit: int = 10) -> List[Dict[str, Any]]:
    field = "downloadCount" if by == "downloads" else "playCount"
    return serialize(await run_in_threadpool(lectures_repo.top_lectures, db, field, limit))

async def top_pages(db: Database, limit: int = 10, page_type: Optional[str] = None) -> List[Dict[str, Any]]:
    return serialize(await run_in_threadpool(page_views_repo.get_top_pages, db, limit, page_type))

async def views_in_range(db: Database, days: int = 30, page_type: Optional[str] = None) -> List[Dict[str, Any]]:
    end = datetime.utcnow()
    start = page_views_repo.day_bucket(end - timedelta(days=days))
    return await run_in_threadpool(page_views_repo.get_views_in_range, db, start, end, page_type)

# ---------------------------
# Public stats
# ---------------------------

def _public_stats(db: Database) -> Dict[str, Any]:
    site = settings_repo.get_settings(db)
    if not settings_repo.should_show_public_stats(site):
        return {"show": False}
    stats = site["cachedStats"]
    return serialize({
        "show": True,
        "stats": {
            "totalPlays": stats["totalPlays"],
            "totalDownloads": stats["totalDownloads"],
            "totalPageViews": stats["totalPageViews"],
            "totalLectures": stats["totalLectures"],
            "lastUpdated": stats["lastUpdated"],
        },
    })

async def public_stats(db: Database, cache: TTLCache) -> Dict[str, Any]:
    return await cache.get_or_set(public_stats_key(), lambda: run_in_threadpool(_public_stats, db), PUBLIC_STATS_TTL)

async def refresh_cached_stats(db: Database) -> Dict[str, Any]:
    return await run_in_threadpool(settings_repo.update_cached_stats, db)

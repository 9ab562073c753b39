# repos/site_settings.py
"""Singleton settings document keyed ``global``."""
import copy
from pymongo.database import Database
from pymongo import ReturnDocument
from typing import Dict, Any
from datetime import datetime
from duroos.repos import lectures as lectures_repo
from duroos.repos import page_views as page_views_repo

SETTINGS_KEY = "global"

DEFAULTS: Dict[str, Any] = {
    "analytics": {
        "showPublicStats": False,
        "minPlaysToDisplay": 1000,
        "minDownloadsToDisplay": 500,
        "minPageViewsToDisplay": 5000,
    },
    "homepage": {
        "showSchedule": True,
        "showSeriesTab": True,
        "showStandaloneTab": True,
        "showKhutbasTab": True,
    },
    "cachedStats": {
        "totalPlays": 0,
        "totalDownloads": 0,
        "totalPageViews": 0,
        "totalLectures": 0,
        "lastUpdated": None,
    },
}

def _with_defaults(doc: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(DEFAULTS)
    for group, values in merged.items():
        values.update(doc.get(group) or {})
    return {**doc, **merged}

def get_settings(db: Database) -> Dict[str, Any]:
    # upsert keeps concurrent first requests from creating two documents
    now = datetime.utcnow()
    doc = db.site_settings.find_one_and_update(
        {"key": SETTINGS_KEY},
        {"$setOnInsert": {"key": SETTINGS_KEY, **copy.deepcopy(DEFAULTS), "createdAt": now, "updatedAt": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return _with_defaults(doc)

def update_settings(db: Database, patch: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """``patch`` is ``{"analytics": {...}, "homepage": {...}}``; only known fields are written."""
    set_ops: Dict[str, Any] = {}
    for group in ("analytics", "homepage"):
        for field, value in (patch.get(group) or {}).items():
            if field not in DEFAULTS[group]:
                raise ValueError(f"Unknown setting: {group}.{field}")
            set_ops[f"{group}.{field}"] = value
    get_settings(db)
    set_ops["updatedAt"] = datetime.utcnow()
    db.site_settings.update_one({"key": SETTINGS_KEY}, {"$set": set_ops})
    return get_settings(db)

def update_cached_stats(db: Database) -> Dict[str, Any]:
    lecture_totals = lectures_repo.totals(db)
    stats = {
        "totalPlays": lecture_totals["totalPlays"],
        "totalDownloads": lecture_totals["totalDownloads"],
        "totalPageViews": page_views_repo.get_total(db),
        "totalLectures": lecture_totals["count"],
        "lastUpdated": datetime.utcnow(),
    }
    db.site_settings.update_one(
        {"key": SETTINGS_KEY},
        {"$set": {"cachedStats": stats}, "$setOnInsert": {"key": SETTINGS_KEY}},
        upsert=True,
    )
    return stats

def should_show_public_stats(settings: Dict[str, Any]) -> bool:
    analytics = settings["analytics"]
    if analytics.get("showPublicStats"):
        return True  # manual override

    stats = settings["cachedStats"]
    return (
        stats.get("totalPlays", 0) >= analytics["minPlaysToDisplay"]
        and stats.get("totalDownloads", 0) >= analytics["minDownloadsToDisplay"]
        and stats.get("totalPageViews", 0) >= analytics["minPageViewsToDisplay"]
    )

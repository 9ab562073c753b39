# repos/page_views.py
"""Day-bucketed page view counters: one document per (page, day)."""
from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING
from typing import Dict, Any, List, Optional
from datetime import datetime, timedelta
from duroos.repos.helper import optional_object_id

PAGE_TYPES = ("homepage", "lecture", "series", "sheikh", "browse", "other")

def day_bucket(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return datetime(now.year, now.month, now.day)

def ensure_indexes(db: Database) -> None:
    db.page_views.create_index([("page", ASCENDING), ("date", ASCENDING)], unique=True, name="page_day_unique")
    db.page_views.create_index([("pageType", ASCENDING), ("date", ASCENDING)])

def record_view(db: Database, page: str, page_type: str = "other", resource_id: Any = None, now: Optional[datetime] = None) -> None:
    ts = now or datetime.utcnow()
    today = day_bucket(ts)
    # $inc on upsert is atomic, concurrent requests on one bucket cannot lose counts
    db.page_views.update_one(
        {"page": page, "date": today},
        {
            "$inc": {"count": 1},
            "$setOnInsert": {
                "pageType": page_type if page_type in PAGE_TYPES else "other",
                "resourceId": optional_object_id(resource_id),
                "createdAt": ts,
            },
            "$set": {"updatedAt": ts},
        },
        upsert=True,
    )

def _sum(db: Database, match: Dict[str, Any]) -> int:
    rows = list(db.page_views.aggregate([
        {"$match": match},
        {"$group": {"_id": None, "total": {"$sum": "$count"}}},
    ]))
    return int(rows[0]["total"]) if rows else 0

def get_total(db: Database) -> int:
    return _sum(db, {})

def get_views_in_range(db: Database, start: datetime, end: datetime, page_type: Optional[str] = None) -> List[Dict[str, Any]]:
    match: Dict[str, Any] = {"date": {"$gte": start, "$lte": end}}
    if page_type:
        match["pageType"] = page_type
    totals: Dict[datetime, int] = {}
    for row in db.page_views.aggregate([
        {"$match": match},
        {"$group": {"_id": "$date", "views": {"$sum": "$count"}}},
    ]):
        totals[row["_id"]] = int(row["views"])
    return [{"date": d.strftime("%Y-%m-%d"), "views": totals[d]} for d in sorted(totals)]

def get_top_pages(db: Database, limit: int = 10, page_type: Optional[str] = None) -> List[Dict[str, Any]]:
    match = {"pageType": page_type} if page_type else {}
    return list(db.page_views.aggregate([
        {"$match": match},
        {"$group": {
            "_id": "$page",
            "pageType": {"$first": "$pageType"},
            "totalViews": {"$sum": "$count"},
        }},
        {"$sort": {"totalViews": DESCENDING}},
        {"$limit": limit},
    ]))

def get_summary(db: Database, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    by_type = {
        row["_id"]: int(row["total"])
        for row in db.page_views.aggregate([
            {"$group": {"_id": "$pageType", "total": {"$sum": "$count"}}},
        ])
    }
    return {
        "total": get_total(db),
        "byType": by_type,
        "last7Days": _sum(db, {"date": {"$gte": day_bucket(now - timedelta(days=7))}}),
        "last30Days": _sum(db, {"date": {"$gte": day_bucket(now - timedelta(days=30))}}),
    }

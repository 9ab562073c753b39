from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from bson import ObjectId
from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime
from duroos.repos.helper import to_object_id, optional_object_id, search_clause, slugify

SEARCH_FIELDS = ("titleArabic", "titleEnglish", "descriptionArabic")

# Duration reports closer than this to the stored value are ignored.
DURATION_TOLERANCE_SECONDS = 1

SORTS = {
    "newest": [("createdAt", DESCENDING)],
    "oldest": [("createdAt", ASCENDING)],
    "popular": [("playCount", DESCENDING), ("createdAt", DESCENDING)],
    "downloads": [("downloadCount", DESCENDING), ("createdAt", DESCENDING)],
    "recorded": [("dateRecorded", DESCENDING), ("createdAt", DESCENDING)],
    "title": [("titleArabic", ASCENDING)],
}

# ---------------------------
# Indexes
# ---------------------------

def ensure_indexes(db: Database) -> None:
    db.lectures.create_index([("published", ASCENDING), ("createdAt", DESCENDING)])
    db.lectures.create_index([("seriesId", ASCENDING), ("published", ASCENDING)])
    db.lectures.create_index([("sheikhId", ASCENDING), ("seriesId", ASCENDING), ("lectureNumber", ASCENDING)])
    db.lectures.create_index([("featured", ASCENDING), ("published", ASCENDING)])
    db.lectures.create_index([("category", ASCENDING)])
    db.lectures.create_index([("slug", ASCENDING)], unique=True, sparse=True)

# ---------------------------
# CRUD
# ---------------------------

def _normalize_refs(data: Dict[str, Any]) -> Dict[str, Any]:
    if "sheikhId" in data:
        data["sheikhId"] = optional_object_id(data["sheikhId"])
    if "seriesId" in data:
        data["seriesId"] = optional_object_id(data["seriesId"])
    return data

def insert_lecture(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    doc = _normalize_refs({
        "titleEnglish": "",
        "descriptionArabic": "",
        "descriptionEnglish": "",
        "seriesId": None,
        "lectureNumber": None,
        "sortOrder": None,
        "duration": 0,
        "fileSize": 0,
        "location": "غير محدد",
        "category": "Other",
        "tags": [],
        "dateRecorded": None,
        "dateRecordedHijri": None,
        "published": False,
        "featured": False,
        "metadata": {},
        **data,
        "playCount": 0,
        "downloadCount": 0,
        "createdAt": now,
        "updatedAt": now,
    })
    if not doc.get("slug"):
        doc.pop("slug", None)
        slug = slugify(doc.get("titleEnglish"))
        if slug and not db.lectures.find_one({"slug": slug}):
            doc["slug"] = slug
    result = db.lectures.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc

def get_lecture(db: Database, lecture_id: str) -> Optional[Dict[str, Any]]:
    return db.lectures.find_one({"_id": to_object_id(lecture_id)})

def get_by_id_or_slug(db: Database, key: str) -> Optional[Dict[str, Any]]:
    if ObjectId.is_valid(key):
        doc = db.lectures.find_one({"_id": ObjectId(key)})
        if doc:
            return doc
    return db.lectures.find_one({"slug": key})

def update_lecture(db: Database, lecture_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = _normalize_refs(dict(patch))
    patch["updatedAt"] = datetime.utcnow()
    return db.lectures.find_one_and_update(
        {"_id": to_object_id(lecture_id)},
        {"$set": patch},
        return_document=ReturnDocument.AFTER,
    )

def delete_lecture(db: Database, lecture_id: str) -> Optional[Dict[str, Any]]:
    return db.lectures.find_one_and_delete({"_id": to_object_id(lecture_id)})

def toggle_published(db: Database, lecture_id: str) -> Optional[Dict[str, Any]]:
    doc = get_lecture(db, lecture_id)
    if not doc:
        return None
    return update_lecture(db, lecture_id, {"published": not doc.get("published", False)})

# ---------------------------
# Counters
# ---------------------------

def _increment(db: Database, lecture_id: str, field: str) -> Optional[Dict[str, Any]]:
    return db.lectures.find_one_and_update(
        {"_id": to_object_id(lecture_id)},
        {"$inc": {field: 1}},
        return_document=ReturnDocument.AFTER,
    )

def increment_play_count(db: Database, lecture_id: str) -> Optional[Dict[str, Any]]:
    return _increment(db, lecture_id, "playCount")

def increment_download_count(db: Database, lecture_id: str) -> Optional[Dict[str, Any]]:
    return _increment(db, lecture_id, "downloadCount")

def update_duration(db: Database, lecture_id: str, duration: int) -> Tuple[Optional[Dict[str, Any]], bool]:
    """Store a client-measured duration; returns (doc, changed)."""
    doc = get_lecture(db, lecture_id)
    if not doc:
        return None, False
    if abs(int(doc.get("duration") or 0) - duration) <= DURATION_TOLERANCE_SECONDS:
        return doc, False
    return update_lecture(db, lecture_id, {"duration": duration}), True

# ---------------------------
# Query helpers
# ---------------------------

def _with_filters(match: Dict[str, Any], category: Optional[str], search: Optional[str]) -> Dict[str, Any]:
    if category and category != "all":
        match["category"] = category
    match.update(search_clause(search, SEARCH_FIELDS))
    return match

def find_published_by_series(db: Database, series_ids: List[ObjectId]) -> Dict[ObjectId, List[Dict[str, Any]]]:
    grouped: Dict[ObjectId, List[Dict[str, Any]]] = {sid: [] for sid in series_ids}
    if not series_ids:
        return grouped
    for doc in db.lectures.find({"seriesId": {"$in": list(series_ids)}, "published": True}):
        grouped.setdefault(doc["seriesId"], []).append(doc)
    return grouped

def find_standalone(db: Database, *, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
    match = _with_filters({"seriesId": None, "published": True}, category, search)
    return list(db.lectures.find(match))

def find_in_series(db: Database, series_id: ObjectId, *, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
    match = _with_filters({"seriesId": series_id, "published": True}, category, search)
    return list(db.lectures.find(match))

def count_standalone(db: Database, *, category: Optional[str] = None, search: Optional[str] = None) -> int:
    return db.lectures.count_documents(_with_filters({"seriesId": None, "published": True}, category, search))

def count_in_series(db: Database, series_id: ObjectId, *, category: Optional[str] = None, search: Optional[str] = None) -> int:
    return db.lectures.count_documents(_with_filters({"seriesId": series_id, "published": True}, category, search))

def series_ids_with_published(db: Database, series_ids: List[ObjectId]) -> List[ObjectId]:
    if not series_ids:
        return []
    pipeline = [
        {"$match": {"seriesId": {"$in": list(series_ids)}, "published": True}},
        {"$group": {"_id": "$seriesId"}},
    ]
    return [row["_id"] for row in db.lectures.aggregate(pipeline)]

def visible_match(visible_series_ids: List[ObjectId]) -> Dict[str, Any]:
    # standalone, or inside a series that still exists and is visible
    return {
        "published": True,
        "$or": [{"seriesId": None}, {"seriesId": {"$in": list(visible_series_ids)}}],
    }

def count_visible_published(db: Database, visible_series_ids: List[ObjectId]) -> int:
    return db.lectures.count_documents(visible_match(visible_series_ids))

def count_referencing(db: Database, *, series_id: Optional[ObjectId] = None, sheikh_id: Optional[ObjectId] = None) -> int:
    match: Dict[str, Any] = {}
    if series_id is not None:
        match["seriesId"] = series_id
    if sheikh_id is not None:
        match["sheikhId"] = sheikh_id
    return db.lectures.count_documents(match)

def count_by_series(db: Database, series_ids: List[ObjectId]) -> Dict[ObjectId, int]:
    if not series_ids:
        return {}
    pipeline = [
        {"$match": {"seriesId": {"$in": list(series_ids)}, "published": True}},
        {"$group": {"_id": "$seriesId", "count": {"$sum": 1}}},
    ]
    return {row["_id"]: row["count"] for row in db.lectures.aggregate(pipeline)}

def count_by_sheikh(db: Database, visible_series_ids: List[ObjectId]) -> Dict[ObjectId, int]:
    pipeline = [
        {"$match": visible_match(visible_series_ids)},
        {"$group": {"_id": "$sheikhId", "count": {"$sum": 1}}},
    ]
    return {row["_id"]: row["count"] for row in db.lectures.aggregate(pipeline)}

def list_lectures(
    db: Database,
    *,
    visible_series_ids: List[ObjectId],
    filters: Dict[str, Any],
    search: Optional[str],
    skip: int,
    limit: int,
    sort: str,
) -> Tuple[int, List[Dict[str, Any]]]:
    clauses: List[Dict[str, Any]] = [visible_match(visible_series_ids)]
    if filters.get("sheikhId"):
        clauses.append({"sheikhId": to_object_id(filters["sheikhId"])})
    if filters.get("seriesId"):
        clauses.append({"seriesId": to_object_id(filters["seriesId"])})
    if filters.get("category") and filters["category"] != "all":
        clauses.append({"category": filters["category"]})
    if filters.get("featured") is not None:
        clauses.append({"featured": filters["featured"]})
    if search:
        clauses.append(search_clause(search, SEARCH_FIELDS))
    match = {"$and": clauses}

    total = db.lectures.count_documents(match)
    cursor = db.lectures.find(match).sort(SORTS.get(sort, SORTS["newest"])).skip(skip).limit(limit)
    return total, list(cursor)

def featured(db: Database, visible_series_ids: List[ObjectId], limit: int = 3) -> List[Dict[str, Any]]:
    match = {**visible_match(visible_series_ids), "featured": True}
    return list(db.lectures.find(match).sort("createdAt", DESCENDING).limit(limit))

def recent(db: Database, visible_series_ids: List[ObjectId], limit: int = 12) -> List[Dict[str, Any]]:
    return list(db.lectures.find(visible_match(visible_series_ids)).sort("createdAt", DESCENDING).limit(limit))

def find_by_sheikh_standalone(db: Database, sheikh_id: ObjectId) -> List[Dict[str, Any]]:
    return list(db.lectures.find({"sheikhId": sheikh_id, "seriesId": None, "published": True}).sort("createdAt", DESCENDING))

def all_visible_for_sitemap(db: Database, visible_series_ids: List[ObjectId]) -> List[Dict[str, Any]]:
    projection = {"slug": 1, "updatedAt": 1, "createdAt": 1}
    return list(db.lectures.find(visible_match(visible_series_ids), projection).sort("createdAt", DESCENDING))

# ---------------------------
# Aggregates
# ---------------------------

def totals(db: Database) -> Dict[str, int]:
    pipeline = [
        {"$match": {"published": True}},
        {"$group": {
            "_id": None,
            "totalPlays": {"$sum": "$playCount"},
            "totalDownloads": {"$sum": "$downloadCount"},
            "count": {"$sum": 1},
        }},
    ]
    rows = list(db.lectures.aggregate(pipeline))
    if not rows:
        return {"totalPlays": 0, "totalDownloads": 0, "count": 0}
    row = rows[0]
    return {
        "totalPlays": int(row.get("totalPlays") or 0),
        "totalDownloads": int(row.get("totalDownloads") or 0),
        "count": int(row.get("count") or 0),
    }

def top_lectures(db: Database, field: str, limit: int = 10) -> List[Dict[str, Any]]:
    projection = {"titleArabic": 1, "titleEnglish": 1, "playCount": 1, "downloadCount": 1, "slug": 1}
    return list(db.lectures.find({"published": True}, projection).sort(field, DESCENDING).limit(limit))

# ---------------------------
# Admin views (every lecture, published or not)
# ---------------------------

NO_AUDIO = {"$or": [{"audioFileName": None}, {"audioFileName": ""}]}

def admin_list(
    db: Database,
    *,
    published: Optional[bool] = None,
    no_audio: bool = False,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[int, List[Dict[str, Any]]]:
    clauses: List[Dict[str, Any]] = []
    if published is not None:
        clauses.append({"published": published})
    if no_audio:
        clauses.append(NO_AUDIO)
    if search:
        clauses.append(search_clause(search, SEARCH_FIELDS))
    match = {"$and": clauses} if clauses else {}
    total = db.lectures.count_documents(match)
    cursor = db.lectures.find(match).sort("createdAt", DESCENDING).skip(skip).limit(limit)
    return total, list(cursor)

def find_all_in_series(db: Database, series_id: ObjectId) -> List[Dict[str, Any]]:
    return list(db.lectures.find({"seriesId": series_id}))

def count_all_by_series(db: Database, series_ids: List[ObjectId]) -> Dict[ObjectId, int]:
    if not series_ids:
        return {}
    pipeline = [
        {"$match": {"seriesId": {"$in": list(series_ids)}}},
        {"$group": {"_id": "$seriesId", "count": {"$sum": 1}}},
    ]
    return {row["_id"]: row["count"] for row in db.lectures.aggregate(pipeline)}

def admin_counts(db: Database) -> Dict[str, int]:
    rows = list(db.lectures.aggregate([
        {"$group": {
            "_id": None,
            "total": {"$sum": 1},
            "totalPlays": {"$sum": "$playCount"},
            "totalDownloads": {"$sum": "$downloadCount"},
        }},
    ]))
    row = rows[0] if rows else {}
    return {
        "totalLectures": int(row.get("total") or 0),
        "publishedLectures": db.lectures.count_documents({"published": True}),
        "noAudioLectures": db.lectures.count_documents(NO_AUDIO),
        "totalPlays": int(row.get("totalPlays") or 0),
        "totalDownloads": int(row.get("totalDownloads") or 0),
    }

def recent_any(db: Database, limit: int = 10) -> List[Dict[str, Any]]:
    return list(db.lectures.find().sort("createdAt", DESCENDING).limit(limit))

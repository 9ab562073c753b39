from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from bson import ObjectId
from typing import Dict, Any, List, Optional
from datetime import datetime
from duroos.repos.helper import to_object_id, optional_object_id, search_clause, slugify

SEARCH_FIELDS = ("titleArabic", "titleEnglish", "bookAuthor")

VISIBLE = {"isVisible": {"$ne": False}}

MISC_TITLE = {"$regex": "محاضرات متفرقة", "$options": "i"}

def ensure_indexes(db: Database) -> None:
    db.series.create_index([("sheikhId", ASCENDING), ("titleArabic", ASCENDING)], unique=True)
    db.series.create_index([("isVisible", ASCENDING), ("createdAt", DESCENDING)])
    db.series.create_index([("sectionId", ASCENDING), ("sectionOrder", ASCENDING)])
    db.series.create_index([("slug", ASCENDING)], unique=True, sparse=True)

# ---------------------------
# CRUD
# ---------------------------

def _normalize_refs(data: Dict[str, Any]) -> Dict[str, Any]:
    if "sheikhId" in data:
        data["sheikhId"] = optional_object_id(data["sheikhId"])
    if "sectionId" in data:
        data["sectionId"] = optional_object_id(data["sectionId"])
    return data

def insert_series(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    doc = _normalize_refs({
        "titleEnglish": "",
        "descriptionArabic": "",
        "descriptionEnglish": "",
        "category": "Other",
        "tags": [],
        "bookTitle": None,
        "bookAuthor": None,
        "isVisible": True,
        "sectionId": None,
        "sectionOrder": 0,
        **data,
        "createdAt": now,
        "updatedAt": now,
    })
    if not doc.get("slug"):
        doc.pop("slug", None)
        slug = slugify(doc.get("titleEnglish"))
        if slug and not db.series.find_one({"slug": slug}):
            doc["slug"] = slug
    result = db.series.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc

def get_series(db: Database, series_id: Any) -> Optional[Dict[str, Any]]:
    return db.series.find_one({"_id": to_object_id(series_id)})

def get_by_id_or_slug(db: Database, key: str) -> Optional[Dict[str, Any]]:
    if ObjectId.is_valid(key):
        doc = db.series.find_one({"_id": ObjectId(key)})
        if doc:
            return doc
    return db.series.find_one({"slug": key})

def get_many(db: Database, series_ids: List[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
    ids = [sid for sid in set(series_ids) if sid is not None]
    if not ids:
        return {}
    return {doc["_id"]: doc for doc in db.series.find({"_id": {"$in": ids}})}

def update_series(db: Database, series_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = _normalize_refs(dict(patch))
    patch["updatedAt"] = datetime.utcnow()
    return db.series.find_one_and_update(
        {"_id": to_object_id(series_id)},
        {"$set": patch},
        return_document=ReturnDocument.AFTER,
    )

def delete_series(db: Database, series_id: str) -> Optional[Dict[str, Any]]:
    return db.series.find_one_and_delete({"_id": to_object_id(series_id)})

# ---------------------------
# Query helpers
# ---------------------------

def find_visible(
    db: Database,
    *,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sheikh_id: Optional[ObjectId] = None,
) -> List[Dict[str, Any]]:
    match: Dict[str, Any] = dict(VISIBLE)
    if category and category != "all":
        match["category"] = category
    if sheikh_id is not None:
        match["sheikhId"] = sheikh_id
    match.update(search_clause(search, SEARCH_FIELDS))
    return list(db.series.find(match).sort("createdAt", DESCENDING))

def find_misc_series(db: Database) -> Optional[Dict[str, Any]]:
    return db.series.find_one({"titleArabic": MISC_TITLE, **VISIBLE})

def visible_series_ids(db: Database) -> List[ObjectId]:
    return [doc["_id"] for doc in db.series.find(VISIBLE, {"_id": 1})]

def count_all(db: Database) -> int:
    return db.series.count_documents(VISIBLE)

def list_all(db: Database) -> List[Dict[str, Any]]:
    """Every series, hidden ones included, newest first."""
    return list(db.series.find().sort("createdAt", DESCENDING))

def count_including_hidden(db: Database) -> int:
    return db.series.count_documents({})

# repos/sheikhs.py
from pymongo.database import Database
from pymongo import ASCENDING, ReturnDocument
from bson import ObjectId
from typing import Dict, Any, List, Optional
from datetime import datetime
from duroos.repos.helper import to_object_id, slugify

# fields attached when a lecture or series embeds its sheikh
PUBLIC_FIELDS = {"nameArabic": 1, "nameEnglish": 1, "honorific": 1, "slug": 1}

def ensure_indexes(db: Database) -> None:
    db.sheikhs.create_index([("nameArabic", ASCENDING)])
    db.sheikhs.create_index([("slug", ASCENDING)], unique=True, sparse=True)

def insert_sheikh(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    doc = {
        "nameEnglish": "",
        "honorific": "حفظه الله",
        "bioArabic": "",
        "bioEnglish": "",
        "photoUrl": None,
        **data,
        "createdAt": now,
        "updatedAt": now,
    }
    if not doc.get("slug"):
        doc.pop("slug", None)
        slug = slugify(doc.get("nameEnglish"))
        if slug and not db.sheikhs.find_one({"slug": slug}):
            doc["slug"] = slug
    result = db.sheikhs.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc

def get_sheikh(db: Database, sheikh_id: Any) -> Optional[Dict[str, Any]]:
    return db.sheikhs.find_one({"_id": to_object_id(sheikh_id)})

def get_by_id_or_slug(db: Database, key: str) -> Optional[Dict[str, Any]]:
    if ObjectId.is_valid(key):
        doc = db.sheikhs.find_one({"_id": ObjectId(key)})
        if doc:
            return doc
    return db.sheikhs.find_one({"slug": key})

def get_many(db: Database, sheikh_ids: List[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
    ids = [sid for sid in set(sheikh_ids) if sid is not None]
    if not ids:
        return {}
    return {doc["_id"]: doc for doc in db.sheikhs.find({"_id": {"$in": ids}}, PUBLIC_FIELDS)}

def update_sheikh(db: Database, sheikh_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = dict(patch)
    patch["updatedAt"] = datetime.utcnow()
    return db.sheikhs.find_one_and_update(
        {"_id": to_object_id(sheikh_id)},
        {"$set": patch},
        return_document=ReturnDocument.AFTER,
    )

def delete_sheikh(db: Database, sheikh_id: str) -> Optional[Dict[str, Any]]:
    return db.sheikhs.find_one_and_delete({"_id": to_object_id(sheikh_id)})

def list_sheikhs(db: Database) -> List[Dict[str, Any]]:
    return list(db.sheikhs.find().sort("nameArabic", ASCENDING))

def count_all(db: Database) -> int:
    return db.sheikhs.count_documents({})

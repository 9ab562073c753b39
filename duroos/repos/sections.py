from pymongo.database import Database
from pymongo import ASCENDING, ReturnDocument, UpdateOne
from typing import Dict, Any, List, Optional
from datetime import datetime
from duroos.repos.helper import to_object_id, slugify

def ensure_indexes(db: Database) -> None:
    db.sections.create_index([("slug", ASCENDING)], unique=True)
    db.sections.create_index([("isVisible", ASCENDING), ("displayOrder", ASCENDING)])

def insert_section(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow()
    doc = {
        "description": {"ar": "", "en": ""},
        "icon": "📚",
        "displayOrder": 0,
        "isVisible": True,
        "isDefault": False,
        "collapsedByDefault": False,
        "maxVisible": 5,
        **data,
        "createdAt": now,
        "updatedAt": now,
    }
    if not doc.get("slug"):
        doc["slug"] = slugify((doc.get("title") or {}).get("en"))
    if not doc["slug"]:
        raise ValueError("Section slug is required when the English title has no latin characters")
    doc["slug"] = doc["slug"].lower()
    if db.sections.find_one({"slug": doc["slug"]}):
        raise ValueError(f"Section slug already exists: {doc['slug']}")
    result = db.sections.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc

def get_section(db: Database, section_id: str) -> Optional[Dict[str, Any]]:
    return db.sections.find_one({"_id": to_object_id(section_id)})

def update_section(db: Database, section_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = dict(patch)
    patch["updatedAt"] = datetime.utcnow()
    return db.sections.find_one_and_update(
        {"_id": to_object_id(section_id)},
        {"$set": patch},
        return_document=ReturnDocument.AFTER,
    )

def delete_section(db: Database, section_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(section_id)
    doc = db.sections.find_one_and_delete({"_id": oid})
    if doc:
        # series fall back to the default section
        db.series.update_many({"sectionId": oid}, {"$set": {"sectionId": None}})
    return doc

def get_ordered_sections(db: Database, include_hidden: bool = False) -> List[Dict[str, Any]]:
    query = {} if include_hidden else {"isVisible": True}
    return list(db.sections.find(query).sort("displayOrder", ASCENDING))

def reorder(db: Database, order: List[Dict[str, Any]]) -> int:
    """Apply ``[{id, order}, ...]`` to displayOrder; returns modified count."""
    ops = [
        UpdateOne({"_id": to_object_id(item["id"])}, {"$set": {"displayOrder": int(item["order"])}})
        for item in order
    ]
    if not ops:
        return 0
    return db.sections.bulk_write(ops).modified_count

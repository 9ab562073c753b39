# repos/schedules.py
from pymongo.database import Database
from pymongo import ASCENDING, ReturnDocument
from typing import Dict, Any, List, Optional
from datetime import datetime
from duroos.repos.helper import to_object_id

# Islamic week order; "daily" slots come first
DAYS_ARABIC = ("يومي", "السبت", "الأحد", "الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة")
DAYS_ENGLISH = ("Daily", "Saturday", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

def day_order(day: str) -> int:
    if day in DAYS_ARABIC:
        return DAYS_ARABIC.index(day)
    return len(DAYS_ARABIC)

def english_day(day: str) -> Optional[str]:
    if day in DAYS_ARABIC:
        return DAYS_ENGLISH[DAYS_ARABIC.index(day)]
    return None

def ensure_indexes(db: Database) -> None:
    db.schedules.create_index([("isActive", ASCENDING), ("sortOrder", ASCENDING)])
    db.schedules.create_index([("seriesId", ASCENDING)])

def insert_schedule(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    if data.get("dayOfWeek") not in DAYS_ARABIC:
        raise ValueError(f"Unknown day of week: {data.get('dayOfWeek')}")
    now = datetime.utcnow()
    doc = {
        "dayOfWeekEnglish": english_day(data["dayOfWeek"]),
        "location": "جامع الورود",
        "locationEnglish": "Masjid Al-Wurud",
        "isActive": True,
        "sortOrder": 0,
        "notes": None,
        **data,
        "seriesId": to_object_id(data["seriesId"]),
        "createdAt": now,
        "updatedAt": now,
    }
    result = db.schedules.insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc

def update_schedule(db: Database, schedule_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = dict(patch)
    if "dayOfWeek" in patch:
        if patch["dayOfWeek"] not in DAYS_ARABIC:
            raise ValueError(f"Unknown day of week: {patch['dayOfWeek']}")
        patch.setdefault("dayOfWeekEnglish", english_day(patch["dayOfWeek"]))
    if "seriesId" in patch:
        patch["seriesId"] = to_object_id(patch["seriesId"])
    patch["updatedAt"] = datetime.utcnow()
    return db.schedules.find_one_and_update(
        {"_id": to_object_id(schedule_id)},
        {"$set": patch},
        return_document=ReturnDocument.AFTER,
    )

def delete_schedule(db: Database, schedule_id: str) -> Optional[Dict[str, Any]]:
    return db.schedules.find_one_and_delete({"_id": to_object_id(schedule_id)})

def list_active(db: Database) -> List[Dict[str, Any]]:
    slots = list(db.schedules.find({"isActive": True}))
    slots.sort(key=lambda s: (day_order(s.get("dayOfWeek", "")), s.get("sortOrder") or 0))
    return slots

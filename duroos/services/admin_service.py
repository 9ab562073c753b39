# services/admin_service.py
"""
Admin reads and writes. Writes go straight to the database: cached homepage widgets
and the sitemap keep serving the previous state until their TTL runs out.
"""
import logging
from typing import Any, Dict, List, Optional
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from fastapi.concurrency import run_in_threadpool
from duroos.errors import ConflictError, NotFoundError
from duroos.repos import lectures as lectures_repo
from duroos.repos import series as series_repo
from duroos.repos import sheikhs as sheikhs_repo
from duroos.repos import sections as sections_repo
from duroos.repos import schedules as schedules_repo
from duroos.repos import site_settings as settings_repo
from duroos.repos.helper import serialize, to_object_id
from duroos.services.audio_urls import with_audio_url
from duroos.services.classification import classify_series_type, is_khutba_series, order_lectures
from duroos.services.content_service import attach_refs
from duroos.services.homepage_service import build_pagination, parse_pagination

logger = logging.getLogger(__name__)


def _require(doc, resource: str):
    if not doc:
        raise NotFoundError(resource)
    return serialize(doc)


def _check_refs(db: Database, data: Dict[str, Any]) -> None:
    if data.get("sheikhId") and not sheikhs_repo.get_sheikh(db, data["sheikhId"]):
        raise ValueError("Sheikh not found")
    if data.get("seriesId") and not series_repo.get_series(db, data["seriesId"]):
        raise ValueError("Series not found")
    if data.get("sectionId") and not sections_repo.get_section(db, data["sectionId"]):
        raise ValueError("Section not found")

# ---------------------------
# Admin reads
# ---------------------------

ADMIN_LECTURES_DEFAULT_LIMIT = 50
RECENT_LECTURES = 10

def _admin_lectures(db, published, no_audio, search, page, limit, skip):
    total, items = lectures_repo.admin_list(
        db, published=published, no_audio=no_audio, search=search, skip=skip, limit=limit
    )
    return {"lectures": serialize(attach_refs(db, items)), "pagination": build_pagination(page, limit, total)}

async def list_lectures(db: Database, *, published: Optional[bool] = None, no_audio: bool = False,
                        search: Optional[str] = None, page: Any = None, limit: Any = None) -> Dict[str, Any]:
    page, limit, skip = parse_pagination(page, limit, ADMIN_LECTURES_DEFAULT_LIMIT)
    return await run_in_threadpool(_admin_lectures, db, published, no_audio, search, page, limit, skip)

def _lecture(db: Database, lecture_id: str) -> Dict[str, Any]:
    doc = lectures_repo.get_lecture(db, lecture_id)
    return _require(doc and attach_refs(db, [doc])[0], "Lecture")

async def get_lecture(db: Database, lecture_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_lecture, db, lecture_id)

def _all_series(db: Database) -> List[Dict[str, Any]]:
    items = series_repo.list_all(db)
    counts = lectures_repo.count_all_by_series(db, [s["_id"] for s in items])
    sheikhs = sheikhs_repo.get_many(db, [s.get("sheikhId") for s in items])
    return serialize([
        {**s, "sheikh": sheikhs.get(s.get("sheikhId")), "lectureCount": counts.get(s["_id"], 0)}
        for s in items
    ])

async def list_series(db: Database) -> List[Dict[str, Any]]:
    return await run_in_threadpool(_all_series, db)

def _series_for_edit(db: Database, series_id: str) -> Dict[str, Any]:
    s = series_repo.get_series(db, series_id)
    if not s:
        raise NotFoundError("Series")
    lectures = order_lectures(lectures_repo.find_all_in_series(db, s["_id"]))
    sheikh = sheikhs_repo.get_many(db, [s.get("sheikhId")]).get(s.get("sheikhId"))
    return serialize({
        **s,
        "sheikh": sheikh,
        "lectures": [with_audio_url(l) for l in lectures],
        "lectureCount": len(lectures),
        "seriesType": classify_series_type(s),
        "isKhutba": is_khutba_series(s),
    })

async def get_series(db: Database, series_id: str) -> Dict[str, Any]:
    """A series in any state, with all of its lectures in display order."""
    return await run_in_threadpool(_series_for_edit, db, series_id)

def _dashboard(db: Database) -> Dict[str, Any]:
    counts = lectures_repo.admin_counts(db)
    stats = {
        **counts,
        "unpublishedLectures": counts["totalLectures"] - counts["publishedLectures"],
        "totalSheikhs": sheikhs_repo.count_all(db),
        "totalSeries": series_repo.count_including_hidden(db),
    }
    recent = attach_refs(db, lectures_repo.recent_any(db, RECENT_LECTURES))
    return serialize({"stats": stats, "recentLectures": recent})

async def dashboard(db: Database) -> Dict[str, Any]:
    return await run_in_threadpool(_dashboard, db)

# ---------------------------
# Lectures
# ---------------------------

def _create_lecture(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, data)
    try:
        doc = lectures_repo.insert_lecture(db, data)
    except DuplicateKeyError:
        raise ValueError("A lecture with this slug already exists")
    logger.info(f"Lecture created: {doc['_id']}")
    return serialize(with_audio_url(doc))

def _update_lecture(db: Database, lecture_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, patch)
    doc = lectures_repo.update_lecture(db, lecture_id, patch)
    return _require(doc and with_audio_url(doc), "Lecture")

def _delete_lecture(db: Database, lecture_id: str) -> Dict[str, Any]:
    doc = lectures_repo.delete_lecture(db, lecture_id)
    if doc and doc.get("audioFileName"):
        # the audio object itself is managed in the storage console
        logger.info(f"Lecture {lecture_id} deleted; audio object {doc['audioFileName']} left in storage")
    return _require(doc, "Lecture")

def _toggle_published(db: Database, lecture_id: str) -> Dict[str, Any]:
    return _require(lectures_repo.toggle_published(db, lecture_id), "Lecture")

async def create_lecture(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_create_lecture, db, data)

async def update_lecture(db: Database, lecture_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_update_lecture, db, lecture_id, patch)

async def delete_lecture(db: Database, lecture_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_delete_lecture, db, lecture_id)

async def toggle_published(db: Database, lecture_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_toggle_published, db, lecture_id)

# ---------------------------
# Series
# ---------------------------

def _create_series(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, data)
    try:
        return serialize(series_repo.insert_series(db, data))
    except DuplicateKeyError:
        raise ValueError("Series already exists for this sheikh")

def _update_series(db: Database, series_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, patch)
    return _require(series_repo.update_series(db, series_id, patch), "Series")

def _delete_series(db: Database, series_id: str) -> Dict[str, Any]:
    count = lectures_repo.count_referencing(db, series_id=to_object_id(series_id))
    if count:
        raise ConflictError(f"Cannot delete series with {count} lectures. Delete lectures first.")
    return _require(series_repo.delete_series(db, series_id), "Series")

async def create_series(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_create_series, db, data)

async def update_series(db: Database, series_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_update_series, db, series_id, patch)

async def delete_series(db: Database, series_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_delete_series, db, series_id)

# ---------------------------
# Sheikhs
# ---------------------------

def _delete_sheikh(db: Database, sheikh_id: str) -> Dict[str, Any]:
    count = lectures_repo.count_referencing(db, sheikh_id=to_object_id(sheikh_id))
    if count:
        raise ConflictError(f"Cannot delete sheikh with {count} lectures. Reassign or delete them first.")
    return _require(sheikhs_repo.delete_sheikh(db, sheikh_id), "Sheikh")

async def create_sheikh(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    return serialize(await run_in_threadpool(sheikhs_repo.insert_sheikh, db, data))

async def update_sheikh(db: Database, sheikh_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    return _require(await run_in_threadpool(sheikhs_repo.update_sheikh, db, sheikh_id, patch), "Sheikh")

async def delete_sheikh(db: Database, sheikh_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_delete_sheikh, db, sheikh_id)

# ---------------------------
# Sections
# ---------------------------

async def list_sections(db: Database) -> List[Dict[str, Any]]:
    return serialize(await run_in_threadpool(sections_repo.get_ordered_sections, db, True))

async def create_section(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    return serialize(await run_in_threadpool(sections_repo.insert_section, db, data))

async def update_section(db: Database, section_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    return _require(await run_in_threadpool(sections_repo.update_section, db, section_id, patch), "Section")

async def delete_section(db: Database, section_id: str) -> Dict[str, Any]:
    return _require(await run_in_threadpool(sections_repo.delete_section, db, section_id), "Section")

async def reorder_sections(db: Database, order: List[Dict[str, Any]]) -> int:
    return await run_in_threadpool(sections_repo.reorder, db, order)

# ---------------------------
# Schedule
# ---------------------------

def _create_schedule(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, data)
    return serialize(schedules_repo.insert_schedule(db, data))

def _update_schedule(db: Database, schedule_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    _check_refs(db, patch)
    return _require(schedules_repo.update_schedule(db, schedule_id, patch), "Schedule")

async def create_schedule(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_create_schedule, db, data)

async def update_schedule(db: Database, schedule_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    return await run_in_threadpool(_update_schedule, db, schedule_id, patch)

async def delete_schedule(db: Database, schedule_id: str) -> Dict[str, Any]:
    return _require(await run_in_threadpool(schedules_repo.delete_schedule, db, schedule_id), "Schedule")

# ---------------------------
# Site settings
# ---------------------------

async def get_site_settings(db: Database) -> Dict[str, Any]:
    return serialize(await run_in_threadpool(settings_repo.get_settings, db))

async def update_site_settings(db: Database, patch: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return serialize(await run_in_threadpool(settings_repo.update_settings, db, patch))

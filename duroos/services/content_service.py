# services/content_service.py
"""Public lecture / series / sheikh reads and the playback counters."""
from typing import Any, Dict, List, Optional
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from duroos.errors import NotFoundError
from duroos.repos import lectures as lectures_repo
from duroos.repos import series as series_repo
from duroos.repos import sheikhs as sheikhs_repo
from duroos.repos.helper import serialize, to_object_id
from duroos.services.audio_urls import with_audio_url
from duroos.services.classification import (
    classify_series_type,
    is_khutba_series,
    is_lecture_visible,
    is_series_visible,
    order_lectures,
)
from duroos.services.homepage_service import parse_pagination, build_pagination

LECTURES_DEFAULT_LIMIT = 20

RELATED_LIMIT = 6


def _parent_series(db: Database, lecture: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if lecture.get("seriesId") is None:
        return None
    return db.series.find_one({"_id": lecture["seriesId"]})


def _visible_lecture(db: Database, lecture_id: str) -> Dict[str, Any]:
    lecture = lectures_repo.get_by_id_or_slug(db, lecture_id)
    if not lecture or not is_lecture_visible(lecture, _parent_series(db, lecture)):
        raise NotFoundError("Lecture")
    return lecture


def attach_refs(db: Database, lectures: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    sheikhs = sheikhs_repo.get_many(db, [l.get("sheikhId") for l in lectures])
    series = series_repo.get_many(db, [l.get("seriesId") for l in lectures])
    for l in lectures:
        l["sheikh"] = sheikhs.get(l.get("sheikhId"))
        parent = series.get(l.get("seriesId"))
        l["series"] = {k: parent.get(k) for k in ("_id", "titleArabic", "titleEnglish", "slug")} if parent else None
        with_audio_url(l)
    return lectures

# ---------------------------
# Lectures
# ---------------------------

def _list_lectures(db, filters, search, page, limit, skip, sort):
    visible = series_repo.visible_series_ids(db)
    total, items = lectures_repo.list_lectures(
        db, visible_series_ids=visible, filters=filters, search=search, skip=skip, limit=limit, sort=sort
    )
    return {"lectures": serialize(attach_refs(db, items)), "pagination": build_pagination(page, limit, total)}

async def list_lectures(db: Database, *, filters: Dict[str, Any], search: Optional[str], page: Any, limit: Any, sort: str):
    page, limit, skip = parse_pagination(page, limit, LECTURES_DEFAULT_LIMIT)
    return await run_in_threadpool(_list_lectures, db, filters, search, page, limit, skip, sort)

def _lecture_detail(db: Database, lecture_id: str) -> Dict[str, Any]:
    lecture = _visible_lecture(db, lecture_id)
    attach_refs(db, [lecture])

    # same series or same sheikh, falling back to same category
    either = []
    if lecture.get("seriesId") is not None:
        either.append({"seriesId": lecture["seriesId"]})
    if lecture.get("sheikhId") is not None:
        either.append({"sheikhId": lecture["sheikhId"]})
    clauses: List[Dict[str, Any]] = [
        {"_id": {"$ne": lecture["_id"]}},
        lectures_repo.visible_match(series_repo.visible_series_ids(db)),
        {"$or": either} if either else {"category": lecture.get("category")},
    ]
    related = list(db.lectures.find({"$and": clauses}).sort("createdAt", -1).limit(RELATED_LIMIT))
    return serialize({"lecture": lecture, "relatedLectures": attach_refs(db, related)})

async def lecture_detail(db: Database, lecture_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_lecture_detail, db, lecture_id)

def _record_play(db: Database, lecture_id: str) -> Dict[str, Any]:
    lecture = _visible_lecture(db, lecture_id)
    updated = lectures_repo.increment_play_count(db, str(lecture["_id"]))
    return serialize(with_audio_url(updated))

async def record_play(db: Database, lecture_id: str) -> Dict[str, Any]:
    return await run_in_threadpool(_record_play, db, lecture_id)

def _audio_target(db: Database, lecture_id: str, download: bool) -> str:
    lecture = with_audio_url(_visible_lecture(db, lecture_id))
    if not lecture.get("audioUrl"):
        raise NotFoundError("Audio")
    # counted only once we know there is something to redirect to
    if download:
        lectures_repo.increment_download_count(db, str(lecture["_id"]))
    else:
        lectures_repo.increment_play_count(db, str(lecture["_id"]))
    return lecture["audioUrl"]

async def audio_target(db: Database, lecture_id: str, download: bool = False) -> str:
    """Public audio URL for /stream and /download; bumps the matching counter."""
    return await run_in_threadpool(_audio_target, db, lecture_id, download)

def _verify_duration(db: Database, lecture_id: str, duration: int) -> Dict[str, Any]:
    if duration <= 0:
        raise ValueError("Duration must be a positive number of seconds")
    lecture = _visible_lecture(db, lecture_id)
    doc, changed = lectures_repo.update_duration(db, str(lecture["_id"]), duration)
    return {"duration": doc.get("duration"), "updated": changed}

async def verify_duration(db: Database, lecture_id: str, duration: int) -> Dict[str, Any]:
    return await run_in_threadpool(_verify_duration, db, lecture_id, duration)

# ---------------------------
# Series
# ---------------------------

def _list_series(db: Database, sheikh_id: Optional[str]) -> List[Dict[str, Any]]:
    visible = series_repo.find_visible(db, sheikh_id=to_object_id(sheikh_id) if sheikh_id else None)
    counts = lectures_repo.count_by_series(db, [s["_id"] for s in visible])
    sheikhs = sheikhs_repo.get_many(db, [s.get("sheikhId") for s in visible])
    out = []
    for s in sorted(visible, key=lambda s: s.get("titleArabic") or ""):
        if not counts.get(s["_id"]):
            continue
        out.append({
            **s,
            "sheikh": sheikhs.get(s.get("sheikhId")),
            "lectureCount": counts[s["_id"]],
            "seriesType": classify_series_type(s),
            "isKhutba": is_khutba_series(s),
        })
    return serialize(out)

async def list_series(db: Database, sheikh_id: Optional[str] = None) -> List[Dict[str, Any]]:
    return await run_in_threadpool(_list_series, db, sheikh_id)

def _series_detail(db: Database, key: str) -> Dict[str, Any]:
    s = series_repo.get_by_id_or_slug(db, key)
    if not s or not is_series_visible(s):
        raise NotFoundError("Series")
    lectures = order_lectures(lectures_repo.find_in_series(db, s["_id"]))
    if not lectures:
        raise NotFoundError("Series")
    sheikh = sheikhs_repo.get_many(db, [s.get("sheikhId")]).get(s.get("sheikhId"))
    return serialize({
        **s,
        "sheikh": sheikh,
        "lectures": [with_audio_url(l) for l in lectures],
        "lectureCount": len(lectures),
        "seriesType": classify_series_type(s),
        "isKhutba": is_khutba_series(s),
    })

async def series_detail(db: Database, key: str) -> Dict[str, Any]:
    return await run_in_threadpool(_series_detail, db, key)

# ---------------------------
# Sheikhs
# ---------------------------

def _list_sheikhs(db: Database) -> List[Dict[str, Any]]:
    counts = lectures_repo.count_by_sheikh(db, series_repo.visible_series_ids(db))
    return serialize([
        {**sheikh, "lectureCount": counts.get(sheikh["_id"], 0)}
        for sheikh in sheikhs_repo.list_sheikhs(db)
    ])

async def list_sheikhs(db: Database) -> List[Dict[str, Any]]:
    return await run_in_threadpool(_list_sheikhs, db)

def _sheikh_detail(db: Database, key: str) -> Dict[str, Any]:
    sheikh = sheikhs_repo.get_by_id_or_slug(db, key)
    if not sheikh:
        raise NotFoundError("Sheikh")
    series = _list_series(db, str(sheikh["_id"]))
    standalone = attach_refs(db, lectures_repo.find_by_sheikh_standalone(db, sheikh["_id"]))
    counts = lectures_repo.count_by_sheikh(db, series_repo.visible_series_ids(db))
    return serialize({
        **sheikh,
        "lectureCount": counts.get(sheikh["_id"], 0),
        "series": series,
        "standaloneLectures": standalone,
    })

async def sheikh_detail(db: Database, key: str) -> Dict[str, Any]:
    return await run_in_threadpool(_sheikh_detail, db, key)

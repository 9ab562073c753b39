# services/homepage_service.py
"""
Homepage tabs and homepage widgets.

The paginated tab endpoints (series / standalone / khutbas / stats) are
request scoped and always hit the database. The homepage overview, sections
and weekly schedule are rebuilt at most once per HOMEPAGE_CACHE_TTL through
the injected TTLCache; admin writes are picked up when the entry expires.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from duroos.config import settings
from duroos.repos import lectures as lectures_repo
from duroos.repos import series as series_repo
from duroos.repos import sheikhs as sheikhs_repo
from duroos.repos import sections as sections_repo
from duroos.repos import schedules as schedules_repo
from duroos.repos import site_settings as settings_repo
from duroos.repos.helper import serialize
from duroos.services.audio_urls import with_audio_url
from duroos.services.cache_keys import homepage_overview_key, homepage_sections_key, homepage_schedule_key
from duroos.services.classification import (
    EPOCH,
    classify_series_type,
    is_khutba_series,
    lecture_date,
    most_recent_date,
    order_lectures,
)
from duroos.services.memory_cache import TTLCache

logger = logging.getLogger(__name__)

MAX_LIMIT = 50
LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
SERIES_DEFAULT_LIMIT = 10
STANDALONE_DEFAULT_LIMIT = 20
FEATURED_COUNT = 3
RECENT_COUNT = 12

# ---------------------------
# Pagination
# ---------------------------

def _to_int(value: Any, default: int) -> int:
    # leading digits win, so "2.5" and "2abc" both read as 2
    if isinstance(value, int):
        return value
    match = LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else default

def parse_pagination(page: Any, limit: Any, default_limit: int) -> Tuple[int, int, int]:
    """Clamp raw query values; returns (page, limit, skip)."""
    page_num = max(1, _to_int(page, 1))
    limit_num = min(MAX_LIMIT, max(1, _to_int(limit, default_limit)))
    return page_num, limit_num, (page_num - 1) * limit_num

def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": -(-total // limit),
        "hasMore": page * limit < total,
    }

def _newest_first(sort: Optional[str]) -> bool:
    return sort != "oldest"

# ---------------------------
# Series entries
# ---------------------------

def _series_entries(db: Database, series_list: List[Dict[str, Any]], *, with_type: bool) -> List[Dict[str, Any]]:
    """Attach ordered visible lectures; series without any are dropped."""
    grouped = lectures_repo.find_published_by_series(db, [s["_id"] for s in series_list])
    sheikhs = sheikhs_repo.get_many(db, [s.get("sheikhId") for s in series_list])

    entries = []
    for s in series_list:
        lectures = order_lectures(grouped.get(s["_id"], []))
        if not lectures:
            continue
        entry = {
            **s,
            "sheikh": sheikhs.get(s.get("sheikhId")),
            "lectures": [with_audio_url(l) for l in lectures],
            "lectureCount": len(lectures),
            "originalAuthor": s.get("bookAuthor") or None,
            "mostRecentDate": most_recent_date(lectures),
        }
        if with_type:
            entry["seriesType"] = classify_series_type(s)
        entries.append(entry)
    return entries

def _sort_series(entries: List[Dict[str, Any]], sort: Optional[str]) -> None:
    entries.sort(
        key=lambda e: (e["mostRecentDate"], e.get("createdAt") or EPOCH, str(e["_id"])),
        reverse=_newest_first(sort),
    )

def _page(items: List[Dict[str, Any]], page: int, limit: int, skip: int) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    return items[skip:skip + limit], build_pagination(page, limit, len(items))

# ---------------------------
# Tabs
# ---------------------------

def _series_tab(db, page, limit, skip, category, series_type, search, sort, exclude_khutbas):
    candidates = series_repo.find_visible(db, category=category, search=search)
    if series_type and series_type != "all":
        candidates = [s for s in candidates if classify_series_type(s) == series_type]
    if exclude_khutbas:
        candidates = [s for s in candidates if not is_khutba_series(s)]

    entries = _series_entries(db, candidates, with_type=True)
    _sort_series(entries, sort)
    items, pagination = _page(entries, page, limit, skip)
    return {"series": serialize(items), "pagination": pagination}

def _khutbas_tab(db, page, limit, skip, search, sort):
    candidates = [s for s in series_repo.find_visible(db, search=search) if is_khutba_series(s)]
    entries = _series_entries(db, candidates, with_type=False)
    _sort_series(entries, sort)
    items, pagination = _page(entries, page, limit, skip)
    return {"series": serialize(items), "pagination": pagination}

def _standalone_tab(db, page, limit, skip, category, search, sort, include_misc):
    lectures = lectures_repo.find_standalone(db, category=category, search=search)
    if include_misc:
        misc = series_repo.find_misc_series(db)
        if misc:
            lectures.extend(lectures_repo.find_in_series(db, misc["_id"], category=category, search=search))

    lectures.sort(
        key=lambda l: (lecture_date(l), l.get("createdAt") or EPOCH, str(l["_id"])),
        reverse=_newest_first(sort),
    )
    items, pagination = _page(lectures, page, limit, skip)
    sheikhs = sheikhs_repo.get_many(db, [l.get("sheikhId") for l in items])
    for l in items:
        l["sheikh"] = sheikhs.get(l.get("sheikhId"))
        with_audio_url(l)
    return {"lectures": serialize(items), "pagination": pagination}

def _tab_stats(db, category, series_type, search):
    candidates = series_repo.find_visible(db, category=category, search=search)
    if series_type and series_type != "all":
        candidates = [s for s in candidates if classify_series_type(s) == series_type]

    regular_ids = [s["_id"] for s in candidates if not is_khutba_series(s)]
    khutba_ids = [s["_id"] for s in candidates if is_khutba_series(s)]

    standalone = lectures_repo.count_standalone(db, category=category, search=search)
    misc = series_repo.find_misc_series(db)
    if misc:
        standalone += lectures_repo.count_in_series(db, misc["_id"], category=category, search=search)

    visible = series_repo.visible_series_ids(db)
    return {
        "series": len(lectures_repo.series_ids_with_published(db, regular_ids)),
        "standalone": standalone,
        "khutbas": len(lectures_repo.series_ids_with_published(db, khutba_ids)),
        "totalLectures": lectures_repo.count_visible_published(db, visible),
    }

async def series_tab(db: Database, *, page: Any = None, limit: Any = None, category: Optional[str] = None,
                     series_type: Optional[str] = None, search: Optional[str] = None,
                     sort: Optional[str] = "newest", exclude_khutbas: bool = True) -> Dict[str, Any]:
    page, limit, skip = parse_pagination(page, limit, SERIES_DEFAULT_LIMIT)
    return await run_in_threadpool(_series_tab, db, page, limit, skip, category, series_type, search, sort, exclude_khutbas)

async def khutbas_tab(db: Database, *, page: Any = None, limit: Any = None, search: Optional[str] = None,
                      sort: Optional[str] = "newest") -> Dict[str, Any]:
    page, limit, skip = parse_pagination(page, limit, SERIES_DEFAULT_LIMIT)
    return await run_in_threadpool(_khutbas_tab, db, page, limit, skip, search, sort)

async def standalone_tab(db: Database, *, page: Any = None, limit: Any = None, category: Optional[str] = None,
                         search: Optional[str] = None, sort: Optional[str] = "newest",
                         include_misc: bool = True) -> Dict[str, Any]:
    page, limit, skip = parse_pagination(page, limit, STANDALONE_DEFAULT_LIMIT)
    return await run_in_threadpool(_standalone_tab, db, page, limit, skip, category, search, sort, include_misc)

async def tab_stats(db: Database, *, category: Optional[str] = None, series_type: Optional[str] = None,
                    search: Optional[str] = None) -> Dict[str, int]:
    return await run_in_threadpool(_tab_stats, db, category, series_type, search)

# ---------------------------
# Cached homepage widgets
# ---------------------------

def build_overview(db: Database) -> Dict[str, Any]:
    visible = series_repo.visible_series_ids(db)
    totals = lectures_repo.totals(db)
    featured = lectures_repo.featured(db, visible, FEATURED_COUNT)
    recent = lectures_repo.recent(db, visible, RECENT_COUNT)

    refs = featured + recent
    sheikhs = sheikhs_repo.get_many(db, [l.get("sheikhId") for l in refs])
    series = series_repo.get_many(db, [l.get("seriesId") for l in refs])
    for l in refs:
        l["sheikh"] = sheikhs.get(l.get("sheikhId"))
        parent = series.get(l.get("seriesId"))
        l["series"] = {k: parent.get(k) for k in ("_id", "titleArabic", "titleEnglish", "slug")} if parent else None
        with_audio_url(l)

    site = settings_repo.get_settings(db)
    return serialize({
        "stats": {
            "totalLectures": lectures_repo.count_visible_published(db, visible),
            "totalSheikhs": sheikhs_repo.count_all(db),
            "totalSeries": series_repo.count_all(db),
            "totalPlays": totals["totalPlays"],
        },
        "featuredLectures": featured,
        "recentLectures": recent,
        "homepage": site["homepage"],
        "showPublicStats": settings_repo.should_show_public_stats(site),
    })

def build_sections(db: Database) -> List[Dict[str, Any]]:
    sections = sections_repo.get_ordered_sections(db)
    if not sections:
        return []
    default = next((s for s in sections if s.get("isDefault")), None) \
        or next((s for s in sections if s.get("slug") == "active"), None)

    visible = series_repo.find_visible(db)
    counts = lectures_repo.count_by_series(db, [s["_id"] for s in visible])
    sheikhs = sheikhs_repo.get_many(db, [s.get("sheikhId") for s in visible])

    grouped: Dict[Any, List[Dict[str, Any]]] = {section["_id"]: [] for section in sections}
    for s in visible:
        if not counts.get(s["_id"]):
            continue
        section_id = s.get("sectionId")
        if section_id is None and default is not None:
            section_id = default["_id"]
        if section_id not in grouped:
            continue
        grouped[section_id].append({
            **s,
            "sheikh": sheikhs.get(s.get("sheikhId")),
            "lectureCount": counts[s["_id"]],
            "seriesType": classify_series_type(s),
            "isKhutba": is_khutba_series(s),
        })

    out = []
    for section in sections:
        members = sorted(grouped[section["_id"]], key=lambda e: (e.get("sectionOrder") or 0, e.get("titleArabic") or ""))
        max_visible = section.get("maxVisible") or 5
        out.append({
            **section,
            "series": members[:max_visible],
            "totalSeries": len(members),
            "hasMore": len(members) > max_visible,
        })
    return serialize(out)

def build_schedule(db: Database) -> List[Dict[str, Any]]:
    slots = schedules_repo.list_active(db)
    series = series_repo.get_many(db, [slot.get("seriesId") for slot in slots])
    sheikhs = sheikhs_repo.get_many(db, [s.get("sheikhId") for s in series.values()])

    out = []
    for slot in slots:
        parent = series.get(slot.get("seriesId"))
        if parent is None or parent.get("isVisible") is False:
            continue
        out.append({
            **slot,
            "series": {k: parent.get(k) for k in ("_id", "titleArabic", "titleEnglish", "slug")},
            "sheikh": sheikhs.get(parent.get("sheikhId")),
        })
    return serialize(out)

WIDGETS = (
    (homepage_overview_key, build_overview),
    (homepage_sections_key, build_sections),
    (homepage_schedule_key, build_schedule),
)

async def _cached(cache: TTLCache, key: str, builder, db: Database):
    return await cache.get_or_set(key, lambda: run_in_threadpool(builder, db), settings.HOMEPAGE_CACHE_TTL)

async def homepage_overview(db: Database, cache: TTLCache) -> Dict[str, Any]:
    return await _cached(cache, homepage_overview_key(), build_overview, db)

async def homepage_sections(db: Database, cache: TTLCache) -> List[Dict[str, Any]]:
    return await _cached(cache, homepage_sections_key(), build_sections, db)

async def weekly_schedule(db: Database, cache: TTLCache) -> List[Dict[str, Any]]:
    return await _cached(cache, homepage_schedule_key(), build_schedule, db)

async def warm_homepage_cache(db: Database, cache: TTLCache) -> None:
    """Recompute every homepage widget and overwrite its cache entry."""
    for key_fn, builder in WIDGETS:
        try:
            value = await run_in_threadpool(builder, db)
            cache.set(key_fn(), value, settings.HOMEPAGE_CACHE_TTL)
        except Exception as e:
            logger.error(f"Failed to warm {key_fn()}: {str(e)}")

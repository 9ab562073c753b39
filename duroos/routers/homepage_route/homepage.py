from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pymongo.database import Database
from typing import Optional
import logging
from duroos.deps import get_db, get_cache
from duroos.services import homepage_service
from duroos.services.memory_cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["homepage"])


def _failure(what: str, exc: Exception) -> JSONResponse:
    logger.error(f"Failed to fetch {what}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": f"Failed to fetch {what}", "error": str(exc)},
    )

# Route to get the paginated series tab. page/limit are taken as raw strings
# so that garbage input is clamped instead of rejected.
@router.get("/homepage/series")
async def homepage_series(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    type: Optional[str] = Query(None, description="online | archive | archive-ramadan | masjid | all"),
    search: Optional[str] = None,
    sort: str = "newest",
    excludeKhutbas: bool = True,
    db: Database = Depends(get_db),
):
    try:
        data = await homepage_service.series_tab(
            db, page=page, limit=limit, category=category, series_type=type,
            search=search, sort=sort, exclude_khutbas=excludeKhutbas,
        )
    except Exception as e:
        return _failure("series", e)
    return {"success": True, **data}

@router.get("/homepage/standalone")
async def homepage_standalone(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "newest",
    includeMisc: bool = True,
    db: Database = Depends(get_db),
):
    try:
        data = await homepage_service.standalone_tab(
            db, page=page, limit=limit, category=category, search=search, sort=sort, include_misc=includeMisc,
        )
    except Exception as e:
        return _failure("standalone lectures", e)
    return {"success": True, **data}

@router.get("/homepage/khutbas")
async def homepage_khutbas(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    sort: str = "newest",
    db: Database = Depends(get_db),
):
    try:
        data = await homepage_service.khutbas_tab(db, page=page, limit=limit, search=search, sort=sort)
    except Exception as e:
        return _failure("khutbas", e)
    return {"success": True, **data}

@router.get("/homepage/stats")
async def homepage_stats(
    category: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    db: Database = Depends(get_db),
):
    try:
        stats = await homepage_service.tab_stats(db, category=category, series_type=type, search=search)
    except Exception as e:
        return _failure("stats", e)
    return {"success": True, "stats": stats}

@router.get("/homepage")
async def homepage_overview(db: Database = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    try:
        data = await homepage_service.homepage_overview(db, cache)
    except Exception as e:
        return _failure("homepage", e)
    return {"success": True, **data}

@router.get("/homepage/sections")
async def homepage_sections(db: Database = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    try:
        sections = await homepage_service.homepage_sections(db, cache)
    except Exception as e:
        return _failure("sections", e)
    return {"success": True, "sections": sections}

@router.get("/schedule")
async def weekly_schedule(db: Database = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    try:
        schedule = await homepage_service.weekly_schedule(db, cache)
    except Exception as e:
        return _failure("schedule", e)
    return {"success": True, "schedule": schedule}

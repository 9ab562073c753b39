from fastapi import APIRouter, Depends, Query
from pymongo.database import Database
from typing import Optional
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.services import analytics_service

router = APIRouter(prefix="/api/admin/analytics", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

@router.get("/summary")
async def summary(db: Database = Depends(get_db)):
    return {"success": True, **await analytics_service.summary(db)}

@router.get("/top-lectures")
async def top_lectures(
    by: str = Query("plays", regex="^(plays|downloads)$"),
    limit: int = Query(10, ge=1, le=50),
    db: Database = Depends(get_db),
):
    return {"success": True, "lectures": await analytics_service.top_lectures(db, by, limit)}

@router.get("/top-pages")
async def top_pages(
    limit: int = Query(10, ge=1, le=50),
    type: Optional[str] = None,
    db: Database = Depends(get_db),
):
    return {"success": True, "pages": await analytics_service.top_pages(db, limit, type)}

@router.get("/views")
async def views(
    days: int = Query(30, ge=1, le=365),
    type: Optional[str] = None,
    db: Database = Depends(get_db),
):
    return {"success": True, "views": await analytics_service.views_in_range(db, days, type)}

@router.post("/refresh", dependencies=[Depends(require_role("admin"))])
async def refresh(db: Database = Depends(get_db)):
    """Recompute the cached public totals now instead of waiting for the job."""
    return {"success": True, "cachedStats": await analytics_service.refresh_cached_stats(db)}

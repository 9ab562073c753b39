from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from typing import Optional
from duroos.deps import get_db
from duroos.errors import NotFoundError
from duroos.services import content_service

router = APIRouter(prefix="/api/series", tags=["series"])

@router.get("")
async def list_series(sheikhId: Optional[str] = None, db: Database = Depends(get_db)):
    series = await content_service.list_series(db, sheikh_id=sheikhId)
    return {"success": True, "series": series, "count": len(series)}

@router.get("/{series_key}")
async def get_series(series_key: str, db: Database = Depends(get_db)):
    try:
        series = await content_service.series_detail(db, series_key)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "series": series}

from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.errors import ConflictError, NotFoundError
from duroos.services import admin_service
from duroos.schemas.content_schema import SeriesCreate, SeriesUpdate, clean_create, clean_patch

router = APIRouter(prefix="/api/admin/series", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

@router.get("")
async def list_series(db: Database = Depends(get_db)):
    series = await admin_service.list_series(db)
    return {"success": True, "series": series}

@router.get("/{series_id}")
async def get_series(series_id: str, db: Database = Depends(get_db)):
    try:
        series = await admin_service.get_series(db, series_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "series": series}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_series(payload: SeriesCreate, db: Database = Depends(get_db)):
    series = await admin_service.create_series(db, clean_create(payload))
    return {"success": True, "series": series}

@router.patch("/{series_id}")
async def update_series(series_id: str, patch: SeriesUpdate, db: Database = Depends(get_db)):
    try:
        series = await admin_service.update_series(db, series_id, clean_patch(patch))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "series": series}

@router.delete("/{series_id}", dependencies=[Depends(require_role("admin"))])
async def delete_series(series_id: str, db: Database = Depends(get_db)):
    try:
        await admin_service.delete_series(db, series_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "message": "Series deleted"}

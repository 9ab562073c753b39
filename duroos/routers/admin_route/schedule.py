from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.errors import NotFoundError
from duroos.services import admin_service
from duroos.schemas.content_schema import ScheduleCreate, ScheduleUpdate, clean_create, clean_patch

router = APIRouter(prefix="/api/admin/schedule", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_slot(payload: ScheduleCreate, db: Database = Depends(get_db)):
    slot = await admin_service.create_schedule(db, clean_create(payload))
    return {"success": True, "schedule": slot}

@router.patch("/{schedule_id}")
async def update_slot(schedule_id: str, patch: ScheduleUpdate, db: Database = Depends(get_db)):
    try:
        slot = await admin_service.update_schedule(db, schedule_id, clean_patch(patch))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "schedule": slot}

@router.delete("/{schedule_id}", dependencies=[Depends(require_role("admin"))])
async def delete_slot(schedule_id: str, db: Database = Depends(get_db)):
    try:
        await admin_service.delete_schedule(db, schedule_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Schedule slot deleted"}

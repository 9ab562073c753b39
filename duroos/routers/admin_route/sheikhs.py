from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.errors import ConflictError, NotFoundError
from duroos.services import admin_service
from duroos.schemas.content_schema import SheikhCreate, SheikhUpdate, clean_create, clean_patch

router = APIRouter(prefix="/api/admin/sheikhs", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_sheikh(payload: SheikhCreate, db: Database = Depends(get_db)):
    sheikh = await admin_service.create_sheikh(db, clean_create(payload))
    return {"success": True, "sheikh": sheikh}

@router.patch("/{sheikh_id}")
async def update_sheikh(sheikh_id: str, patch: SheikhUpdate, db: Database = Depends(get_db)):
    try:
        sheikh = await admin_service.update_sheikh(db, sheikh_id, clean_patch(patch))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "sheikh": sheikh}

@router.delete("/{sheikh_id}", dependencies=[Depends(require_role("admin"))])
async def delete_sheikh(sheikh_id: str, db: Database = Depends(get_db)):
    try:
        await admin_service.delete_sheikh(db, sheikh_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "message": "Sheikh deleted"}

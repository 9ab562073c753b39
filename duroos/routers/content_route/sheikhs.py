from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from duroos.deps import get_db
from duroos.errors import NotFoundError
from duroos.services import content_service

router = APIRouter(prefix="/api/sheikhs", tags=["sheikhs"])

@router.get("")
async def list_sheikhs(db: Database = Depends(get_db)):
    sheikhs = await content_service.list_sheikhs(db)
    return {"success": True, "sheikhs": sheikhs}

@router.get("/{sheikh_key}")
async def get_sheikh(sheikh_key: str, db: Database = Depends(get_db)):
    try:
        sheikh = await content_service.sheikh_detail(db, sheikh_key)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "sheikh": sheikh}

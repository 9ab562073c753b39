from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.database import Database
from typing import List
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.errors import NotFoundError
from duroos.services import admin_service
from duroos.schemas.content_schema import SectionCreate, SectionUpdate, ReorderItem, clean_create, clean_patch

router = APIRouter(prefix="/api/admin/sections", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

@router.get("")
async def list_sections(db: Database = Depends(get_db)):
    return {"success": True, "sections": await admin_service.list_sections(db)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_section(payload: SectionCreate, db: Database = Depends(get_db)):
    section = await admin_service.create_section(db, clean_create(payload))
    return {"success": True, "section": section}

# Declared before /{section_id} so "reorder" is never taken for an id.
@router.put("/reorder")
async def reorder_sections(order: List[ReorderItem], db: Database = Depends(get_db)):
    updated = await admin_service.reorder_sections(db, [item.dict() for item in order])
    return {"success": True, "updated": updated}

@router.patch("/{section_id}")
async def update_section(section_id: str, patch: SectionUpdate, db: Database = Depends(get_db)):
    try:
        section = await admin_service.update_section(db, section_id, clean_patch(patch))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "section": section}

@router.delete("/{section_id}", dependencies=[Depends(require_role("admin"))])
async def delete_section(section_id: str, db: Database = Depends(get_db)):
    try:
        await admin_service.delete_section(db, section_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Section deleted"}

from fastapi import APIRouter, Depends
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.services import admin_service
from duroos.schemas.content_schema import SettingsUpdate, clean_patch

router = APIRouter(prefix="/api/admin/settings", tags=["admin"])

@router.get("", dependencies=[Depends(require_role("admin", "editor"))])
async def get_settings(db: Database = Depends(get_db)):
    return {"success": True, "settings": await admin_service.get_site_settings(db)}

@router.patch("", dependencies=[Depends(require_role("admin"))])
async def update_settings(patch: SettingsUpdate, db: Database = Depends(get_db)):
    return {"success": True, "settings": await admin_service.update_site_settings(db, clean_patch(patch))}

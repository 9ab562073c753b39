from fastapi import APIRouter, Depends
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.services import admin_service

router = APIRouter(prefix="/api/admin/dashboard", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

# Totals across every lecture and series, plus the ten newest uploads
@router.get("")
async def dashboard(db: Database = Depends(get_db)):
    data = await admin_service.dashboard(db)
    return {"success": True, **data}

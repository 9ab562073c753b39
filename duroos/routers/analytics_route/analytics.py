from fastapi import APIRouter, Depends
from pymongo.database import Database
from duroos.deps import get_db, get_cache
from duroos.services import analytics_service
from duroos.services.memory_cache import TTLCache

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

@router.get("/public")
async def public_stats(db: Database = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    return {"success": True, **await analytics_service.public_stats(db, cache)}

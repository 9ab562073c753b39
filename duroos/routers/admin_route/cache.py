from fastapi import APIRouter, Depends
from typing import Optional
import logging
from duroos.deps import get_cache
from duroos.auth.dependencies import require_role
from duroos.services.memory_cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/cache", tags=["admin"], dependencies=[Depends(require_role("admin"))])

@router.get("/stats")
async def cache_stats(cache: TTLCache = Depends(get_cache)):
    return {"success": True, "stats": cache.get_stats(), "keys": cache.keys()}

@router.delete("")
async def invalidate(pattern: Optional[str] = None, cache: TTLCache = Depends(get_cache)):
    if pattern:
        removed = cache.invalidate_pattern(pattern)
    else:
        removed = cache.size()
        cache.clear()
    logger.info(f"Cache invalidated ({pattern or 'all'}): {removed} keys")
    return {"success": True, "removed": removed}

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from pymongo.database import Database
from pymongo.errors import PyMongoError
import logging
from duroos.deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

@router.get("/health", summary="Health Check", description="Check that the application can reach MongoDB")
async def health_check(db: Database = Depends(get_db)):
    mongo_status = "disconnected"
    mongo_error = None

    try:
        await run_in_threadpool(db.command, "ping")
        mongo_status = "connected"
    except (ConnectionError, PyMongoError) as e:
        logger.warning(f"MongoDB connection failed: {str(e)}")
        mongo_error = "Connection failed"

    healthy = mongo_status == "connected"
    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "mongodb": {
                "status": mongo_status,
                "error": mongo_error,
            }
        },
    }
    return JSONResponse(status_code=200 if healthy else 503, content=response)

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.database import Database
from typing import Optional
from duroos.deps import get_db
from duroos.errors import NotFoundError
from duroos.services import content_service
from duroos.schemas.content_schema import DurationReport

router = APIRouter(prefix="/api/lectures", tags=["lectures"])

# Route to get paginated list of published, visible lectures
@router.get("")
async def list_lectures(
    search: Optional[str] = Query(None, description="Substring match on titles and description"),
    sheikhId: Optional[str] = None,
    seriesId: Optional[str] = None,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    sort: str = Query("newest", regex="^(newest|oldest|popular|downloads|recorded|title)$"),
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    filters = {
        **({"sheikhId": sheikhId} if sheikhId else {}),
        **({"seriesId": seriesId} if seriesId else {}),
        **({"category": category} if category else {}),
        **({"featured": featured} if featured is not None else {}),
    }
    data = await content_service.list_lectures(db, filters=filters, search=search, page=page, limit=limit, sort=sort)
    return {"success": True, **data}

@router.get("/{lecture_id}")
async def get_lecture(lecture_id: str, db: Database = Depends(get_db)):
    """Lecture by id or slug, with up to six related lectures."""
    try:
        data = await content_service.lecture_detail(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, **data}

@router.post("/{lecture_id}/play")
async def record_play(lecture_id: str, db: Database = Depends(get_db)):
    try:
        lecture = await content_service.record_play(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "playCount": lecture.get("playCount", 0)}

@router.post("/{lecture_id}/verify-duration")
async def verify_duration(lecture_id: str, payload: DurationReport, db: Database = Depends(get_db)):
    """The player reports the real length once metadata has loaded."""
    try:
        result = await content_service.verify_duration(db, lecture_id, payload.duration)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, **result}

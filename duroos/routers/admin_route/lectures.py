from fastapi import APIRouter, Depends, HTTPException, status
from typing import Optional
from pymongo.database import Database
from duroos.deps import get_db
from duroos.auth.dependencies import require_role
from duroos.errors import NotFoundError
from duroos.services import admin_service
from duroos.schemas.content_schema import LectureCreate, LectureUpdate, clean_create, clean_patch

router = APIRouter(prefix="/api/admin/lectures", tags=["admin"],
                   dependencies=[Depends(require_role("admin", "editor"))])

# Every lecture, unpublished ones included, newest first
@router.get("")
async def list_lectures(
    published: Optional[bool] = None,
    noAudio: bool = False,
    search: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Database = Depends(get_db),
):
    data = await admin_service.list_lectures(db, published=published, no_audio=noAudio,
                                             search=search, page=page, limit=limit)
    return {"success": True, **data}

@router.get("/{lecture_id}")
async def get_lecture(lecture_id: str, db: Database = Depends(get_db)):
    try:
        lecture = await admin_service.get_lecture(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "lecture": lecture}

# Route to create a new lecture. Unknown sheikh/series ids are a 400.
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lecture(payload: LectureCreate, db: Database = Depends(get_db)):
    lecture = await admin_service.create_lecture(db, clean_create(payload))
    return {"success": True, "lecture": lecture}

@router.patch("/{lecture_id}")
async def update_lecture(lecture_id: str, patch: LectureUpdate, db: Database = Depends(get_db)):
    try:
        lecture = await admin_service.update_lecture(db, lecture_id, clean_patch(patch))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "lecture": lecture}

@router.post("/{lecture_id}/toggle-published")
async def toggle_published(lecture_id: str, db: Database = Depends(get_db)):
    try:
        lecture = await admin_service.toggle_published(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "published": lecture["published"]}

@router.delete("/{lecture_id}", dependencies=[Depends(require_role("admin"))])
async def delete_lecture(lecture_id: str, db: Database = Depends(get_db)):
    try:
        await admin_service.delete_lecture(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Lecture deleted"}

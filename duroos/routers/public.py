# routers/public.py
"""Non-JSON public endpoints: sitemap, robots and the audio redirects."""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse, Response, PlainTextResponse
from pymongo.database import Database
from duroos.deps import get_db, get_cache
from duroos.errors import NotFoundError
from duroos.services import content_service, sitemap_service
from duroos.services.memory_cache import TTLCache

router = APIRouter(tags=["public"])

@router.get("/sitemap.xml")
async def sitemap(db: Database = Depends(get_db), cache: TTLCache = Depends(get_cache)):
    xml = await sitemap_service.sitemap_xml(db, cache)
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )

@router.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    return sitemap_service.robots_txt()

@router.get("/stream/{lecture_id}")
async def stream(lecture_id: str, db: Database = Depends(get_db)):
    try:
        url = await content_service.audio_target(db, lecture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RedirectResponse(url=url, status_code=307)

@router.get("/download/{lecture_id}")
async def download(lecture_id: str, db: Database = Depends(get_db)):
    try:
        url = await content_service.audio_target(db, lecture_id, download=True)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RedirectResponse(url=url, status_code=307)

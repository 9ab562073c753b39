# middleware/analytics.py
"""Counts public page views without delaying the response."""
import asyncio
import logging
import re
from typing import Callable, Set
from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from duroos.services.analytics_service import classify_page, record_page_view

logger = logging.getLogger(__name__)

BOT_PATTERN = re.compile(r"bot|crawl|spider|slurp|googlebot|bingbot|yandex", re.IGNORECASE)


def should_track(method: str, path: str, user_agent: str) -> bool:
    if method != "GET":
        return False
    if "." in path:
        return False  # static asset
    if classify_page(path) is None:
        return False
    return not BOT_PATTERN.search(user_agent or "")


class PageViewMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        self._pending: Set[asyncio.Task] = set()

    def _done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception():
            logger.warning(f"Page view tracking failed: {task.exception()}")

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        path = request.url.path
        if response.status_code < 400 and should_track(request.method, path, request.headers.get("user-agent", "")):
            db = getattr(request.app.state, "db", None)
            if db is not None:
                page_type, key = classify_page(path)
                task = asyncio.create_task(run_in_threadpool(record_page_view, db, path, page_type, key))
                self._pending.add(task)
                task.add_done_callback(self._done)
        return response

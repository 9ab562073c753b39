# services/sitemap_service.py
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from xml.sax.saxutils import escape
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from duroos.config import settings
from duroos.repos import lectures as lectures_repo
from duroos.repos import series as series_repo
from duroos.repos import sheikhs as sheikhs_repo
from duroos.services.cache_keys import sitemap_key
from duroos.services.memory_cache import TTLCache

STATIC_PAGES = (
    ("/", "daily", "1.0"),
    ("/browse", "daily", "0.8"),
    ("/series", "weekly", "0.8"),
    ("/sheikhs", "weekly", "0.7"),
)

# (path, lastmod, changefreq, priority)
Entry = Tuple[str, Optional[datetime], str, str]


def _lastmod(doc) -> Optional[datetime]:
    return doc.get("updatedAt") or doc.get("createdAt")


def _ref(doc) -> str:
    return doc.get("slug") or str(doc["_id"])


def collect_entries(db: Database) -> List[Entry]:
    visible = series_repo.visible_series_ids(db)
    entries: List[Entry] = [(path, None, freq, prio) for path, freq, prio in STATIC_PAGES]

    for lecture in lectures_repo.all_visible_for_sitemap(db, visible):
        entries.append((f"/lectures/{_ref(lecture)}", _lastmod(lecture), "monthly", "0.6"))

    visible = series_repo.find_visible(db)
    non_empty = set(lectures_repo.series_ids_with_published(db, [s["_id"] for s in visible]))
    for s in visible:
        if s["_id"] in non_empty:
            entries.append((f"/series/{_ref(s)}", _lastmod(s), "weekly", "0.7"))

    for sheikh in sheikhs_repo.list_sheikhs(db):
        entries.append((f"/sheikhs/{_ref(sheikh)}", _lastmod(sheikh), "weekly", "0.5"))
    return entries


def render_sitemap(entries: Iterable[Entry], site_url: str) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for path, lastmod, changefreq, priority in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(site_url + path)}</loc>")
        if lastmod is not None:
            lines.append(f"    <lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>")
        lines.append(f"    <changefreq>{changefreq}</changefreq>")
        lines.append(f"    <priority>{priority}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def build_sitemap(db: Database, site_url: str) -> str:
    return render_sitemap(collect_entries(db), site_url)


async def sitemap_xml(db: Database, cache: TTLCache, site_url: Optional[str] = None) -> str:
    site_url = site_url or settings.SITE_URL
    return await cache.get_or_set(
        sitemap_key(),
        lambda: run_in_threadpool(build_sitemap, db, site_url),
        settings.SITEMAP_CACHE_TTL,
    )


def robots_txt(site_url: Optional[str] = None) -> str:
    site_url = site_url or settings.SITE_URL
    return (
        "User-agent: *\n"
        "Allow: /\n"
        "Disallow: /admin/\n"
        "Disallow: /api/\n"
        "Disallow: /auth/\n"
        "\n"
        f"Sitemap: {site_url}/sitemap.xml\n"
    )

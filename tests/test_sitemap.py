from datetime import datetime

from duroos.config import settings
from duroos.services.sitemap_service import render_sitemap

from conftest import make_lecture, make_series, make_sheikh


def test_sitemap_lists_visible_content(client, db):
    sheikh = make_sheikh(db, slug="hasan")
    series = make_series(db, sheikh, slug="usool", updatedAt=datetime(2024, 2, 3))
    make_lecture(db, sheikh, series, slug="usool-1")
    loose = make_lecture(db, sheikh)
    hidden = make_series(db, sheikh, slug="secret", isVisible=False)
    make_lecture(db, sheikh, hidden, slug="secret-1")
    make_series(db, sheikh, slug="empty")
    make_lecture(db, sheikh, slug="draft", published=False)

    resp = client.get("/sitemap.xml")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert resp.headers["cache-control"] == "public, max-age=3600"

    xml = resp.text
    site = settings.SITE_URL
    assert f"<loc>{site}/</loc>" in xml
    assert f"<loc>{site}/lectures/usool-1</loc>" in xml
    assert f"<loc>{site}/lectures/{loose['_id']}</loc>" in xml
    assert f"<loc>{site}/series/usool</loc>" in xml
    assert f"<loc>{site}/sheikhs/hasan</loc>" in xml
    assert "<lastmod>2024-02-03</lastmod>" in xml
    for missing in ("secret", "empty", "draft"):
        assert f"/{missing}" not in xml


def test_sitemap_is_cached(client, db, cache):
    sheikh = make_sheikh(db)
    client.get("/sitemap.xml")
    make_lecture(db, sheikh, slug="late")
    assert "/lectures/late" not in client.get("/sitemap.xml").text
    cache.invalidate_pattern("sitemap:*")
    assert "/lectures/late" in client.get("/sitemap.xml").text


def test_render_escapes_locations():
    xml = render_sitemap([("/search?a=1&b=2", None, "daily", "0.5")], "https://example.com")
    assert "<loc>https://example.com/search?a=1&amp;b=2</loc>" in xml
    assert "<lastmod>" not in xml


def test_robots(client):
    resp = client.get("/robots.txt")
    assert resp.headers["content-type"].startswith("text/plain")
    assert "Disallow: /admin/" in resp.text
    assert "Disallow: /api/" in resp.text
    assert f"Sitemap: {settings.SITE_URL}/sitemap.xml" in resp.text

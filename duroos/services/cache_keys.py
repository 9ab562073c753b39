# services/cache_keys.py

HOMEPAGE_PREFIX = "homepage:"

def homepage_overview_key() -> str:
    return f"{HOMEPAGE_PREFIX}overview"

def homepage_sections_key() -> str:
    return f"{HOMEPAGE_PREFIX}sections"

def homepage_schedule_key() -> str:
    return f"{HOMEPAGE_PREFIX}schedule"

def sitemap_key() -> str:
    return "sitemap:xml"

def public_stats_key() -> str:
    return "analytics:public"

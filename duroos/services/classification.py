# services/classification.py
"""
Read-time rules shared by every public listing.

Series type and khutba status are derived from tags and the Arabic title on
every read and are never written back to the series document.
"""

import functools
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

# Lectures without an explicit sortOrder go after every ordered lecture.
UNORDERED_SORT_ORDER = 999999
UNNUMBERED_LECTURE = float("inf")

# Checked in order; the first match wins.
TYPE_TAGS = (
    ("online", "online"),
    ("archive-ramadan", "archive-ramadan"),
    ("archive", "archive"),
)
TYPE_TITLE_MARKERS = (
    ("عن بعد", "online"),
    ("أرشيف رمضان", "archive-ramadan"),
    ("أرشيف", "archive"),
)

KHUTBA_TAG = "khutba"
KHUTBA_TITLE_MARKERS = ("خطب", "خطبة")

EPOCH = datetime(1970, 1, 1)


def is_lecture_visible(lecture: Dict[str, Any], parent_series: Optional[Dict[str, Any]]) -> bool:
    if lecture.get("published") is not True:
        return False
    if lecture.get("seriesId") is None:
        return True
    # a dangling series reference is treated like a hidden series
    if parent_series is None:
        return False
    return parent_series.get("isVisible") is not False


def is_series_visible(series: Dict[str, Any]) -> bool:
    return series.get("isVisible") is not False


def classify_series_type(series: Dict[str, Any]) -> str:
    tags = series.get("tags") or []
    for tag, series_type in TYPE_TAGS:
        if tag in tags:
            return series_type

    title = series.get("titleArabic") or ""
    for marker, series_type in TYPE_TITLE_MARKERS:
        if marker in title:
            return series_type
    return "masjid"


def is_khutba_series(series: Dict[str, Any]) -> bool:
    if KHUTBA_TAG in (series.get("tags") or []):
        return True
    title = series.get("titleArabic") or ""
    return any(marker in title for marker in KHUTBA_TITLE_MARKERS)


def _sort_order(lecture: Dict[str, Any]) -> float:
    value = lecture.get("sortOrder")
    return UNORDERED_SORT_ORDER if value is None else value


def _lecture_number(lecture: Dict[str, Any]) -> float:
    value = lecture.get("lectureNumber")
    return UNNUMBERED_LECTURE if value is None else value


def _created_at(lecture: Dict[str, Any]) -> datetime:
    return lecture.get("createdAt") or EPOCH


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def compare_lecture_order(a: Dict[str, Any], b: Dict[str, Any]) -> int:
    """sortOrder, then lectureNumber, then creation time; all ascending."""
    return (
        _cmp(_sort_order(a), _sort_order(b))
        or _cmp(_lecture_number(a), _lecture_number(b))
        or _cmp(_created_at(a), _created_at(b))
    )


def order_lectures(lectures: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(lectures, key=functools.cmp_to_key(compare_lecture_order))


def lecture_date(lecture: Dict[str, Any]) -> datetime:
    return lecture.get("dateRecorded") or lecture.get("createdAt") or EPOCH


def most_recent_date(lectures: Iterable[Dict[str, Any]]) -> datetime:
    return max((lecture_date(l) for l in lectures), default=EPOCH)

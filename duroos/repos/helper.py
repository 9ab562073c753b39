# repos/helper.py
import re
from typing import Any, Dict, Iterable, Optional
from bson import ObjectId
from bson.errors import InvalidId
from duroos.errors import InvalidIdError

SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidIdError(value)


def optional_object_id(value: Any) -> Optional[ObjectId]:
    if value in (None, ""):
        return None
    return to_object_id(value)


def serialize(doc: Any) -> Any:
    """Recursively turn ObjectIds into strings so documents are JSON safe."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {k: serialize(v) for k, v in doc.items()}
    if isinstance(doc, list):
        return [serialize(v) for v in doc]
    return doc


def search_regex(term: str) -> Dict[str, Any]:
    # user input is matched literally
    return {"$regex": re.escape(term), "$options": "i"}


def search_clause(term: Optional[str], fields: Iterable[str]) -> Dict[str, Any]:
    if not term:
        return {}
    rx = search_regex(term)
    return {"$or": [{f: rx} for f in fields]}


def slugify(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    slug = SLUG_STRIP.sub("-", text.lower()).strip("-")
    return slug or None

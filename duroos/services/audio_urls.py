# services/audio_urls.py
from typing import Any, Dict, Optional
from urllib.parse import quote
from duroos.config import settings


def audio_url(audio_file_name: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Public URL of an audio object, or None when it cannot be derived."""
    if not audio_file_name:
        return None
    if audio_file_name.startswith(("http://", "https://")):
        return audio_file_name
    base = base_url if base_url is not None else settings.AUDIO_PUBLIC_BASE_URL
    if not base:
        return None
    return f"{base.rstrip('/')}/{quote(audio_file_name.lstrip('/'))}"


def with_audio_url(lecture: Dict[str, Any]) -> Dict[str, Any]:
    lecture["audioUrl"] = audio_url(lecture.get("audioFileName"))
    return lecture

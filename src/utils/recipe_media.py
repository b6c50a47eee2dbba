"""
Media references attached to recipe steps.

A step's ``media`` list holds dicts of ``{"type", "url", "caption",
"timestamp"}`` where type is image, video or document. Videos may be YouTube
or Vimeo links; the helpers here pull out the provider's video id, build the
embeddable player URL and thumbnail, and check that each URL and timestamp is
well formed before a recipe is saved.
"""

import re
from typing import List, Optional
from urllib.parse import urlparse

from .constants import MEDIA_TYPE_IMAGE, MEDIA_TYPE_VIDEO, MEDIA_TYPES

_YOUTUBE_ID = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)
_VIMEO_ID = re.compile(r"vimeo\.com/(?:video/)?([0-9]+)")

# [[H]H:]MM:SS, [M]M:SS or plain seconds
_TIMESTAMP = re.compile(r"^(?:(?:([01]?\d|2[0-3]):)?([0-5]?\d):)?([0-5]?\d)$")


def _youtube_id(url: str) -> Optional[str]:
    match = _YOUTUBE_ID.search(url)
    return match.group(1) if match else None


def _vimeo_id(url: str) -> Optional[str]:
    match = _VIMEO_ID.search(url)
    return match.group(1) if match else None


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Video id from a YouTube or Vimeo URL.

    Example:
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://vimeo.com/76979871")
        '76979871'
    """
    if not url:
        return None
    return _youtube_id(url) or _vimeo_id(url)


def format_video_url(url: str) -> str:
    """Embeddable player URL for a video link; unrecognized links are returned unchanged."""
    youtube_id = _youtube_id(url or "")
    if youtube_id:
        return f"https://www.youtube.com/embed/{youtube_id}"
    vimeo_id = _vimeo_id(url or "")
    if vimeo_id:
        return f"https://player.vimeo.com/video/{vimeo_id}"
    return url


def get_video_thumbnail(url: str) -> str:
    """Thumbnail image URL for a YouTube link, or "" when none is available."""
    youtube_id = _youtube_id(url or "")
    if youtube_id:
        return f"https://img.youtube.com/vi/{youtube_id}/hqdefault.jpg"
    return ""


def is_valid_timestamp(value: Optional[str]) -> bool:
    """True for ``SS``, ``MM:SS`` or ``HH:MM:SS`` offsets."""
    return bool(value) and _TIMESTAMP.match(str(value).strip()) is not None


def format_timestamp(seconds: int) -> str:
    """
    Render an offset in seconds as ``MM:SS``, or ``HH:MM:SS`` past an hour.

    Example:
        >>> format_timestamp(75)
        '01:15'
        >>> format_timestamp(3725)
        '01:02:05'
    """
    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def _is_valid_image_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(str(url).strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_media_urls(steps: List[dict]) -> List[str]:
    """
    Check the media attached to each recipe step.

    Video links must be YouTube or Vimeo, image links must be absolute
    http(s) URLs, and a timestamp, when given, must read as ``[HH:]MM:SS``.
    Document links are not checked.

    Args:
        steps: Recipe step dicts, each with an optional ``media`` list

    Returns:
        Messages such as "Step 2, Media 1: Invalid video URL" (empty = valid)
    """
    errors = []
    for step_index, step in enumerate(steps or [], start=1):
        for media_index, media in enumerate(step.get("media") or [], start=1):
            prefix = f"Step {step_index}, Media {media_index}"
            media_type = media.get("type")
            url = media.get("url")

            if media_type not in MEDIA_TYPES:
                errors.append(f"{prefix}: Media type must be one of {', '.join(MEDIA_TYPES)}")
            elif media_type == MEDIA_TYPE_VIDEO and not extract_video_id(url):
                errors.append(f"{prefix}: Invalid video URL")
            elif media_type == MEDIA_TYPE_IMAGE and not _is_valid_image_url(url):
                errors.append(f"{prefix}: Invalid image URL")

            timestamp = media.get("timestamp")
            if timestamp not in (None, "") and not is_valid_timestamp(timestamp):
                errors.append(f"{prefix}: Invalid timestamp format")
    return errors

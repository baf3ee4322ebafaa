"""
Typed content payloads.

`ContentItem.payload` is stored as JSON but always goes through
`parse_payload` on the way in, which turns it into one variant per item
type and rejects shapes that do not match the type.

Wire shapes:
    text                       -> {"content": "..."}   ("body" accepted on input)
    video/audio/image/file     -> {"url": "https://...", "label": "..."}
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import parse_qs, urlparse


class PayloadError(ValueError):
    pass


@dataclass(frozen=True)
class TextPayload:
    body: str

    kind = "text"

    def to_wire(self) -> dict:
        return {"content": self.body}


@dataclass(frozen=True)
class MediaPayload:
    url: str
    label: Optional[str] = None

    kind = "media"

    def to_wire(self) -> dict:
        out = {"url": self.url}
        if self.label:
            out["label"] = self.label
        return out


@dataclass(frozen=True)
class VideoPayload(MediaPayload):
    kind = "video"


@dataclass(frozen=True)
class AudioPayload(MediaPayload):
    kind = "audio"


@dataclass(frozen=True)
class ImagePayload(MediaPayload):
    kind = "image"


@dataclass(frozen=True)
class FilePayload(MediaPayload):
    kind = "file"


Payload = Union[TextPayload, VideoPayload, AudioPayload, ImagePayload, FilePayload]

MEDIA_VARIANTS = {
    "video": VideoPayload,
    "audio": AudioPayload,
    "image": ImagePayload,
    "file": FilePayload,
}


def youtube_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.endswith("youtu.be"):
        vid = parsed.path.strip("/").split("/")[0]
        return vid or None
    if host.endswith("youtube.com"):
        if parsed.path.startswith("/embed/"):
            vid = parsed.path[len("/embed/"):].split("/")[0]
            return vid or None
        vid = (parse_qs(parsed.query).get("v") or [""])[0].strip()
        return vid or None
    return None


def normalize_video_url(url: str) -> str:
    """YouTube watch/short links become embed links; anything else is kept."""
    vid = youtube_id(url)
    if vid:
        return f"https://www.youtube.com/embed/{vid}"
    return url


def _is_http_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _optional_str(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PayloadError(f"'{key}' must be a string.")
    return value.strip() or None


def parse_payload(content_type: str, raw) -> Payload:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise PayloadError("payload must be an object.")

    if content_type == "text":
        body = raw.get("content", raw.get("body", ""))
        if body is None:
            body = ""
        if not isinstance(body, str):
            raise PayloadError("'content' must be a string.")
        if "url" in raw and raw["url"]:
            raise PayloadError("text content does not take a 'url'.")
        return TextPayload(body=body)

    variant = MEDIA_VARIANTS.get(content_type)
    if variant is None:
        raise PayloadError(f"unknown content type '{content_type}'.")

    url = _optional_str(raw, "url")
    if not url:
        raise PayloadError(f"{content_type} content requires a 'url'.")
    if not _is_http_url(url):
        raise PayloadError("'url' must be an http(s) address.")
    if content_type == "video":
        url = normalize_video_url(url)
    return variant(url=url, label=_optional_str(raw, "label"))

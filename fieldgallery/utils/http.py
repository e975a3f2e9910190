# fieldgallery/utils/http.py
from pathlib import Path
from typing import Any, Optional, Tuple
from urllib.parse import unquote_to_bytes
import base64

import httpx


def is_absolute_url(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def media_url(file_path: str) -> str:
    """
    Normalize a MediaFile.file_path for fetching/display:
    absolute http(s) URLs are kept verbatim, anything else is made server-rooted.
    """
    if is_absolute_url(file_path):
        return file_path
    return file_path if file_path.startswith("/") else f"/{file_path}"


def abs_url(base_url: str, path: str) -> str:
    """Return absolute URL (scheme://host/path) for a server-rooted path."""
    if is_absolute_url(path):
        return path
    base = base_url.rstrip("/")
    return f"{base}{media_url(path)}"


def error_message(response: httpx.Response, default: str) -> str:
    """
    Pull the human-readable message out of a non-2xx JSON body
    ({"message": ...}); fall back to `default` when it is missing or unparsable.
    """
    try:
        body: Any = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        msg = body.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return default


def decode_data_url(url: str) -> Optional[bytes]:
    """Bytes of a base64 `data:` URL (annotated images are saved that way); None otherwise."""
    if not url.startswith("data:") or "," not in url:
        return None
    header, _, data = url.partition(",")
    if not header.endswith(";base64"):
        return unquote_to_bytes(data)
    return base64.b64decode(data)


def split_filename(path: str) -> Tuple[str, Optional[str]]:
    """('IMG_1.jpg', '.jpg') style split on the last path segment."""
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if "." in name:
        return name, "." + name.rsplit(".", 1)[-1].lower()
    return name, None


def safe_rel_under(base: Path, target: Path) -> Optional[Path]:
    """
    Return target's path relative to base if target is inside base, else None.
    Prevents path traversal.
    """
    try:
        return target.resolve().relative_to(base.resolve())
    except ValueError:
        return None

# fieldgallery/utils/formatting.py
# Display helpers shared by gallery cards, the lightbox header and the CLI.

from __future__ import annotations
from datetime import datetime
from typing import Optional

from fieldgallery.schemas.media import MediaFile

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(num_bytes: int) -> str:
    """1536 -> '1.5 KB'; at most two decimals, trailing zeros dropped."""
    if num_bytes <= 0:
        return "0 Bytes"
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(_SIZE_UNITS) - 1:
        i += 1
    value = f"{num_bytes / (1024 ** i):.2f}".rstrip("0").rstrip(".")
    return f"{value} {_SIZE_UNITS[i]}"


def format_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def uploader_label(f: MediaFile, *, with_email: bool = False) -> Optional[str]:
    """'Jane Doe • 555-0100' (plus email in list view); None when unknown."""
    u = f.uploaded_by
    if u is None:
        return None
    parts = [u.full_name]
    if u.phone:
        parts.append(u.phone)
    if with_email:
        parts.append(u.email)
    return " • ".join(parts)

# fieldgallery/utils/thumbs.py
from pathlib import Path
from typing import Optional, Union
import hashlib
import io
import logging

from PIL import Image
from fastapi.responses import FileResponse, Response

logger = logging.getLogger(__name__)

# clockwise degrees (as shown in the lightbox) -> Pillow transpose op
_CLOCKWISE = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

ImageSource = Union[Path, bytes]


def _open(src: ImageSource) -> Image.Image:
    return Image.open(src if isinstance(src, Path) else io.BytesIO(src))


def _to_jpeg(im: Image.Image, quality: int = 82) -> bytes:
    buf = io.BytesIO()
    im.convert("RGB").save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def _scaled(im: Image.Image, h: int) -> Image.Image:
    w, hh = im.size
    scale = (h / hh) if hh else 1.0
    new_w = max(int(w * scale), 1)
    return im.resize((new_w, h))


def thumb_key(cache_dir: Path, abs_path: Path, h: int) -> Path:
    """Cache key for a path+height; stored under cache_dir as JPEG."""
    key = hashlib.sha1(f"{abs_path}|h={h}".encode()).hexdigest()
    return cache_dir / f"{key}.jpg"


def make_thumb_bytes(src: ImageSource, h: int) -> bytes:
    """Load an image and return a resized JPEG as bytes with requested height."""
    with _open(src) as im:
        return _to_jpeg(_scaled(im, h))


def render_rotated(src: ImageSource, rotation: int, h: Optional[int] = None) -> bytes:
    """
    Render an image the way the lightbox shows it: rotated clockwise by
    `rotation` degrees (0/90/180/270), optionally scaled to height h.
    """
    if rotation % 90 or not (0 <= rotation < 360):
        raise ValueError(f"rotation must be one of 0/90/180/270, got {rotation}")
    with _open(src) as im:
        out = im.transpose(_CLOCKWISE[rotation]) if rotation else im.copy()
        if h:
            out = _scaled(out, h)
        return _to_jpeg(out)


def serve_or_build_thumb(abs_path: Path, h: int, cache_dir: Path):
    """
    Serve a cached thumbnail if present; otherwise build, cache, and serve it.
    On failure, fall back to serving the original file.
    """
    cache_path = thumb_key(cache_dir, abs_path, h)
    if cache_path.exists():
        return FileResponse(cache_path, media_type="image/jpeg")
    try:
        img_bytes = make_thumb_bytes(abs_path, h)
    except OSError as e:
        logger.warning(f"thumbnail failed for {abs_path.name}: {e}")
        return FileResponse(abs_path)  # fallback if conversion fails
    cache_dir.mkdir(parents=True, exist_ok=True)
    cache_path.write_bytes(img_bytes)
    return Response(img_bytes, media_type="image/jpeg")

import base64
import io
from pathlib import Path

import httpx
import pytest
from conftest import jpeg_bytes, make_file
from PIL import Image

from fieldgallery.schemas.media import Uploader
from fieldgallery.utils.formatting import format_file_size, uploader_label
from fieldgallery.utils.http import (
    abs_url, decode_data_url, error_message, media_url, safe_rel_under, split_filename,
)
from fieldgallery.utils.thumbs import make_thumb_bytes, render_rotated


def test_media_url():
    assert media_url("uploads/a.jpg") == "/uploads/a.jpg"
    assert media_url("/uploads/a.jpg") == "/uploads/a.jpg"
    assert media_url("https://cdn.example.org/a.jpg") == "https://cdn.example.org/a.jpg"
    assert abs_url("http://host:8000/", "uploads/a.jpg") == "http://host:8000/uploads/a.jpg"


@pytest.mark.parametrize("resp,expected", [
    (httpx.Response(413, json={"message": "too large"}), "too large"),
    (httpx.Response(500, json={"message": "  "}), "fallback"),
    (httpx.Response(500, json={"error": "x"}), "fallback"),
    (httpx.Response(500, json=["message"]), "fallback"),
    (httpx.Response(502, text="<html>bad gateway</html>"), "fallback"),
    (httpx.Response(500), "fallback"),
])
def test_error_message(resp, expected):
    assert error_message(resp, "fallback") == expected


def test_decode_data_url():
    raw = b"\x89PNG..."
    assert decode_data_url("data:image/png;base64," + base64.b64encode(raw).decode()) == raw
    assert decode_data_url("data:text/plain,hello%20there") == b"hello there"
    assert decode_data_url("https://cdn/x.png") is None
    assert decode_data_url("data:broken") is None


def test_split_filename():
    assert split_filename("uploads/IMG_1.JPG") == ("IMG_1.JPG", ".jpg")
    assert split_filename("README") == ("README", None)


def test_safe_rel_under(tmp_path):
    base = tmp_path / "uploads"
    base.mkdir()
    assert safe_rel_under(base, base / "a" / "b.jpg") == Path("a/b.jpg")
    assert safe_rel_under(base, base / ".." / "secret") is None


@pytest.mark.parametrize("size,label", [
    (0, "0 Bytes"),
    (512, "512 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (2_621_440, "2.5 MB"),
    (5 * 1024 ** 4, "5120 GB"),
])
def test_format_file_size(size, label):
    assert format_file_size(size) == label


def test_uploader_label():
    u = Uploader(id=1, first_name="Ana", last_name="Silva", email="ana@x.org", phone="555-0100")
    f = make_file(1, uploaded_by=u)
    assert uploader_label(f) == "Ana Silva • 555-0100"
    assert uploader_label(f, with_email=True) == "Ana Silva • 555-0100 • ana@x.org"
    assert uploader_label(make_file(2)) is None


def size_of(data: bytes):
    with Image.open(io.BytesIO(data)) as im:
        return im.size


@pytest.mark.parametrize("rotation,size", [(0, (40, 20)), (90, (20, 40)), (180, (40, 20)), (270, (20, 40))])
def test_render_rotated(rotation, size):
    assert size_of(render_rotated(jpeg_bytes(40, 20), rotation)) == size


def test_render_rotated_scales_after_rotating():
    assert size_of(render_rotated(jpeg_bytes(40, 20), 90, h=80)) == (40, 80)


def test_render_rotated_rejects_odd_angles():
    with pytest.raises(ValueError):
        render_rotated(jpeg_bytes(), 45)
    with pytest.raises(ValueError):
        render_rotated(jpeg_bytes(), 360)


def test_make_thumb_bytes():
    assert size_of(make_thumb_bytes(jpeg_bytes(300, 100), 50)) == (150, 50)

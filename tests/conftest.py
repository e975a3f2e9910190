import io
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fieldgallery.core.config import load_settings
from fieldgallery.main import create_app
from fieldgallery.schemas.media import MediaFile
from fieldgallery.services.gallery import MediaGallery
from fieldgallery.services.gateway import FileGateway
from fieldgallery.services.notify import RecordingNotifier
from fieldgallery.services.query_cache import QueryCache


def make_file(id, file_type="image", **kw) -> MediaFile:
    """MediaFile with just enough fields; extra wire fields via kw (snake_case)."""
    data = dict(
        id=id,
        file_name=f"f{id}",
        original_name=f"file-{id}.bin",
        file_path=f"uploads/f{id}",
        file_size=1024,
        file_type=file_type,
        mime_type="",
        created_at=datetime(2024, 7, 8, 8, 0, 38, tzinfo=timezone.utc),
    )
    data.update(kw)
    return MediaFile(**data)


def jpeg_bytes(w=40, h=20, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (w, h), color).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def settings(tmp_path):
    # point at a non-existent config so a stray fieldgallery.toml never leaks in
    return load_settings(
        tmp_path / "none.toml",
        overrides={"dev": {"data_dir": str(tmp_path / "data"), "max_upload_mb": 1}},
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def gateway(client):
    return FileGateway(client)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def cache():
    return QueryCache()


@pytest.fixture
def gallery(gateway, notifier, cache):
    """Gallery bound to project 7 on the dev server."""
    g = MediaGallery(gateway, notifier, cache, project_id=7)
    yield g
    g.dispose()


def upload(client, project_id, name, content, content_type="image/jpeg", description=""):
    resp = client.post(
        f"/api/projects/{project_id}/files",
        files={"file": (name, content, content_type)},
        data={"description": description},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()

# fieldgallery/api/routes/files.py
# Dev stand-in for the file API the gallery talks to:
# - GET    /api/projects/{project_id}/files
# - POST   /api/projects/{project_id}/files   (multipart: file, description)
# - DELETE /api/files/{file_id}
# - POST   /api/files/annotations
# - GET    /uploads/{path}
# - GET    /thumb/{file_id}?h=220
# Errors are returned as {"message": ...} (see main.py).

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import closing
from pathlib import Path
from typing import Iterator, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from fieldgallery.core.config import Settings
from fieldgallery.repositories import db
from fieldgallery.schemas.media import IMAGE, VIDEO, AnnotationPayload, MediaFile
from fieldgallery.utils.http import safe_rel_under, split_filename
from fieldgallery.utils.thumbs import serve_or_build_thumb

logger = logging.getLogger(__name__)

api_router = APIRouter(tags=["files"])      # mounted under /api in main
public_router = APIRouter(tags=["files-public"])  # mounted without prefix


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_con(settings: Settings = Depends(get_settings)) -> Iterator[sqlite3.Connection]:
    with closing(db.get_conn(settings.db_path)) as con:
        yield con


def file_type_for(filename: str, content_type: str, settings: Settings) -> str:
    """Tag an upload as image/video/document by extension, then by MIME family."""
    _, ext = split_filename(filename)
    if ext in settings.image_ext:
        return IMAGE
    if ext in settings.video_ext:
        return VIDEO
    family = (content_type or "").split("/", 1)[0]
    if family in (IMAGE, VIDEO):
        return family
    return "document"


# ===========================
# ========== API ============
# ===========================

@api_router.get("/projects/{project_id}/files", response_model=List[MediaFile],
                response_model_by_alias=True)
def list_project_files(project_id: int, con: sqlite3.Connection = Depends(get_con)):
    return [db.row_to_wire(r) for r in db.list_files(con, project_id)]


@api_router.post("/projects/{project_id}/files", response_model=MediaFile,
                 response_model_by_alias=True)
async def upload_project_file(
    project_id: int,
    file: UploadFile = File(...),
    description: str = Form(""),
    settings: Settings = Depends(get_settings),
    con: sqlite3.Connection = Depends(get_con),
):
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File too large")

    original = file.filename or "upload"
    _, ext = split_filename(original)
    stored = f"{uuid.uuid4().hex}{ext or ''}"
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    (settings.upload_dir / stored).write_bytes(content)

    mime = file.content_type or "application/octet-stream"
    file_id = db.insert_file(
        con,
        project_id=project_id,
        file_name=stored,
        original_name=original,
        file_path=f"uploads/{stored}",
        file_size=len(content),
        file_type=file_type_for(original, mime, settings),
        mime_type=mime,
        description=description or None,
    )
    logger.info(f"stored upload {original} as file {file_id} (project {project_id})")
    return db.row_to_wire(db.get_file(con, file_id))


@api_router.delete("/files/{file_id}")
def delete_file(file_id: int, settings: Settings = Depends(get_settings),
                con: sqlite3.Connection = Depends(get_con)):
    row = db.get_file(con, file_id)
    if row is None:
        raise HTTPException(status_code=404, detail="File not found")
    db.delete_file(con, file_id)
    blob = (settings.upload_dir / row["file_name"]).resolve()
    if safe_rel_under(settings.upload_dir, blob) is not None and blob.is_file():
        blob.unlink()
    return {"message": "File deleted", "id": file_id}


@api_router.post("/files/annotations", response_model=MediaFile, response_model_by_alias=True)
def save_annotations(payload: AnnotationPayload, con: sqlite3.Connection = Depends(get_con)):
    if not db.save_annotations(con, payload.file_id, payload.annotations,
                               payload.annotated_image_url):
        raise HTTPException(status_code=404, detail="File not found")
    return db.row_to_wire(db.get_file(con, payload.file_id))


# ==============================
# ======== PUBLIC FILES ========
# ==============================

def _upload_path(settings: Settings, path: str) -> Path:
    abs_path = (settings.upload_dir / path).resolve()
    if safe_rel_under(settings.upload_dir, abs_path) is None:
        raise HTTPException(status_code=403, detail="forbidden path")
    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="file not found")
    return abs_path


@public_router.get("/uploads/{path:path}")
def get_upload(path: str, settings: Settings = Depends(get_settings)):
    return FileResponse(_upload_path(settings, path))


@public_router.get("/thumb/{file_id}")
def get_thumb(file_id: int, h: int = 0, settings: Settings = Depends(get_settings),
              con: sqlite3.Connection = Depends(get_con)):
    """JPEG thumbnail of an image file at height h (defaults to [gallery].thumb_height)."""
    row = db.get_file(con, file_id)
    if row is None:
        raise HTTPException(status_code=404, detail="File not found")
    if row["file_type"] != IMAGE:
        raise HTTPException(status_code=415, detail="Thumbnails are only available for images")
    h = h or settings.thumb_height
    if not (16 <= h <= 4096):
        raise HTTPException(status_code=400, detail="h must be 16..4096")
    return serve_or_build_thumb(_upload_path(settings, row["file_name"]), h, settings.thumb_dir)

# fieldgallery/schemas/media.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

IMAGE = "image"
VIDEO = "video"


# ---- file_type as a closed variant (the wire value stays an open string) ----

@dataclass(frozen=True)
class Image:
    name = IMAGE

@dataclass(frozen=True)
class Video:
    name = VIDEO

@dataclass(frozen=True)
class Document:
    raw_type: str

    @property
    def name(self) -> str:
        return self.raw_type

MediaKind = Union[Image, Video, Document]


def media_kind(file_type: str) -> MediaKind:
    if file_type == IMAGE:
        return Image()
    if file_type == VIDEO:
        return Video()
    return Document(file_type)


class _Wire(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Uploader(_Wire):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class MediaFile(_Wire):
    """Read-only projection of a server file record."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    file_name: str
    original_name: str
    file_path: str
    file_size: int = 0
    file_type: str
    mime_type: str = ""
    description: Optional[str] = None
    created_at: datetime
    annotations: Optional[List[Dict[str, Any]]] = None
    annotated_image_url: Optional[str] = None
    uploaded_by: Optional[Uploader] = None
    # e-signature fields are carried through untouched
    signature_status: Optional[str] = None
    docusign_envelope_id: Optional[str] = None
    signature_url: Optional[str] = None

    @property
    def kind(self) -> MediaKind:
        return media_kind(self.file_type)

    @property
    def is_image(self) -> bool:
        return self.file_type == IMAGE

    @property
    def is_video(self) -> bool:
        return self.file_type == VIDEO

    @property
    def is_annotated(self) -> bool:
        return bool(self.annotations)


class AnnotationPayload(_Wire):
    file_id: int
    annotations: List[Dict[str, Any]]
    annotated_image_url: str


class ErrorBody(BaseModel):
    message: str

# fieldgallery/services/classifier.py
# Partition a gallery's file list into images / videos / documents.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from fieldgallery.schemas.media import Document, Image, MediaFile, Video


@dataclass(frozen=True)
class Classified:
    images: List[MediaFile] = field(default_factory=list)
    videos: List[MediaFile] = field(default_factory=list)
    documents: List[MediaFile] = field(default_factory=list)

    @property
    def navigable(self) -> List[MediaFile]:
        """Lightbox traversal order: every image, then every video."""
        return [*self.images, *self.videos]

    def counts(self) -> dict:
        return {
            "images": len(self.images),
            "videos": len(self.videos),
            "documents": len(self.documents),
            "total": len(self.images) + len(self.videos) + len(self.documents),
        }


def classify(files: Sequence[MediaFile]) -> Classified:
    """Order-preserving split on file_type; anything not image/video is a document."""
    out = Classified()
    for f in files:
        kind = f.kind
        if isinstance(kind, Image):
            out.images.append(f)
        elif isinstance(kind, Video):
            out.videos.append(f)
        elif isinstance(kind, Document):
            out.documents.append(f)
    return out


_last_input: Optional[Sequence[MediaFile]] = None
_last_result: Optional[Classified] = None


def classify_cached(files: Sequence[MediaFile]) -> Classified:
    """classify() memoised on the identity of the input list."""
    global _last_input, _last_result
    if _last_result is None or files is not _last_input:
        _last_input, _last_result = files, classify(files)
    return _last_result

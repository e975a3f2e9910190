# fieldgallery/services/selection.py
# Bulk-action selection over a gallery's images.
#
# Mode policy: entering selection mode never touches the selection;
# only clear() empties it (and also leaves the mode).

from __future__ import annotations
import logging
from typing import Dict, Iterable, List

from fieldgallery.schemas.media import MediaFile

logger = logging.getLogger(__name__)


class SelectionSet:
    def __init__(self) -> None:
        self._files: Dict[int, MediaFile] = {}  # id -> file, insertion ordered
        self.mode: bool = False

    # ---- membership ----
    def toggle(self, f: MediaFile) -> bool:
        """Flip membership of an image; returns the new membership. Non-images are ignored."""
        if not f.is_image:
            logger.debug(f"ignoring selection toggle for non-image file {f.id} ({f.file_type})")
            return False
        if f.id in self._files:
            del self._files[f.id]
            return False
        self._files[f.id] = f
        return True

    def select_all(self, images: Iterable[MediaFile]) -> None:
        self._files = {f.id: f for f in images if f.is_image}

    def clear(self) -> None:
        self._files = {}
        self.mode = False

    def is_selected(self, f: MediaFile) -> bool:
        return f.id in self._files

    def all_selected(self, images: Iterable[MediaFile]) -> bool:
        ids = {f.id for f in images if f.is_image}
        return bool(ids) and ids <= self._files.keys()

    # ---- mode ----
    def enter_mode(self) -> None:
        self.mode = True

    def exit_mode(self) -> None:
        self.mode = False

    def toggle_mode(self) -> bool:
        self.mode = not self.mode
        return self.mode

    # ---- views ----
    @property
    def files(self) -> List[MediaFile]:
        return list(self._files.values())

    @property
    def ids(self) -> List[int]:
        return list(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, f: object) -> bool:
        return isinstance(f, MediaFile) and f.id in self._files

    def __repr__(self) -> str:
        return f"SelectionSet(mode={self.mode}, ids={self.ids})"

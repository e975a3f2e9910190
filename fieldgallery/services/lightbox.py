# fieldgallery/services/lightbox.py
# Lightbox state: which media item is open, where it sits in the
# navigable sequence (images ++ videos), and its transient rotation.

from __future__ import annotations
from typing import Callable, List, Optional

from fieldgallery.schemas.media import MediaFile

PREV = "prev"
NEXT = "next"


class RotationState:
    """Clockwise rotation in degrees, one of 0/90/180/270."""

    def __init__(self) -> None:
        self.degrees: int = 0

    def rotate(self) -> int:
        self.degrees = (self.degrees + 90) % 360
        return self.degrees

    def reset(self) -> None:
        self.degrees = 0

    def __repr__(self) -> str:
        return f"RotationState({self.degrees})"


class LightboxNavigator:
    """
    `sequence` is called on every open/navigate so that a list refreshed
    after a delete or upload is always what gets indexed.
    """

    def __init__(self, sequence: Callable[[], List[MediaFile]]) -> None:
        self._sequence = sequence
        self.current: Optional[MediaFile] = None
        self.index: int = -1
        self.rotation = RotationState()

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def open(self, f: MediaFile) -> int:
        """Show `f`; index is -1 when it is not navigable (documents)."""
        items = self._sequence()
        self.index = next((i for i, m in enumerate(items) if m.id == f.id), -1)
        self.current = f
        self.rotation.reset()
        return self.index

    def navigate(self, direction: str) -> Optional[MediaFile]:
        if direction not in (PREV, NEXT):
            raise ValueError(f"direction must be '{PREV}' or '{NEXT}', got {direction!r}")
        items = self._sequence()
        n = len(items)
        if n:
            if self.index >= n:
                self.index = -1  # list shrank under us
            if direction == PREV:
                new = self.index - 1 if self.index > 0 else n - 1
            else:
                new = self.index + 1 if self.index < n - 1 else 0
            self.index = new
            self.current = items[new]
        # per-viewing transient: reset even when landing on the same item
        self.rotation.reset()
        return self.current

    def close(self) -> None:
        self.current = None

    def rotate(self) -> int:
        return self.rotation.rotate()

    @property
    def total(self) -> int:
        return len(self._sequence())

    @property
    def has_navigation(self) -> bool:
        """Prev/next controls only make sense with more than one item."""
        return self.total > 1

    @property
    def position_label(self) -> str:
        return f"{self.index + 1} / {self.total}"

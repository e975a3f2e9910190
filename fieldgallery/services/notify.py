# fieldgallery/services/notify.py
# Toast sink passed into the gallery instead of a global dispatcher.

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import List, Optional, Protocol

SUCCESS = "success"
ERROR = "error"     # "destructive" toast


@dataclass(frozen=True)
class Toast:
    kind: str
    title: str
    message: str


class Notifier(Protocol):
    def notify(self, kind: str, title: str, message: str) -> None: ...


class LogNotifier:
    """Writes toasts to the fieldgallery log (errors at WARNING)."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("fieldgallery.toast")

    def notify(self, kind: str, title: str, message: str) -> None:
        level = logging.WARNING if kind == ERROR else logging.INFO
        self.logger.log(level, f"{title}: {message}")


class RecordingNotifier:
    """Keeps every toast in order; `last` is the most recent one."""

    def __init__(self) -> None:
        self.toasts: List[Toast] = []

    def notify(self, kind: str, title: str, message: str) -> None:
        self.toasts.append(Toast(kind, title, message))

    @property
    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()

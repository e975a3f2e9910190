# fieldgallery/services/gallery.py
# One gallery instance: classified file list, selection, lightbox and
# the mutations a user can trigger from them.
#
# Local state is only ever changed by local actions. A failed mutation
# produces a toast and nothing else; a successful one invalidates the
# project's file list so every gallery watching it refetches.

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from fieldgallery.core.logging_setup import gallery_logger
from fieldgallery.schemas.media import MediaFile
from fieldgallery.services.classifier import Classified, classify_cached
from fieldgallery.services.gateway import TRANSPORT, FileGateway, MutationFailed
from fieldgallery.services.lightbox import LightboxNavigator
from fieldgallery.services.notify import ERROR, SUCCESS, Notifier
from fieldgallery.services.query_cache import QueryCache, project_files_key
from fieldgallery.services.selection import SelectionSet
from fieldgallery.utils.formatting import format_date, format_file_size, uploader_label
from fieldgallery.utils.http import decode_data_url, media_url
from fieldgallery.utils.thumbs import render_rotated

VIEW_MODES = ("grid", "list")
PREVIEW_TAB = "preview"
ANNOTATE_TAB = "annotate"
CAMERA_DESCRIPTION = "Photo taken with mobile camera from gallery"


@dataclass(frozen=True)
class FileCard:
    """What a grid/list card shows for one file."""
    id: int
    title: str
    file_type: str
    size: str
    date: str
    description: Optional[str]
    uploader: Optional[str]
    annotated: bool
    previewable: bool
    selectable: bool
    selected: bool
    url: str


class MediaGallery:
    def __init__(self, gateway: FileGateway, notifier: Notifier, cache: QueryCache,
                 project_id: Optional[int] = None, files: Optional[Sequence[MediaFile]] = None,
                 view_mode: str = "grid") -> None:
        self.gateway = gateway
        self.notifier = notifier
        self.cache = cache
        self.project_id = project_id
        self.log = gallery_logger(project_id)

        self.view_mode = "grid"
        self.set_view_mode(view_mode)
        self.active_tab = PREVIEW_TAB
        self.share_dialog_open = False
        self.selection = SelectionSet()
        self.lightbox = LightboxNavigator(lambda: self.classified.navigable)

        self._static_files: List[MediaFile] = list(files or [])
        self._unsubscribe = None
        if project_id is not None:
            key = project_files_key(project_id)
            cache.register(key, lambda: gateway.list_project_files(project_id))
            self._unsubscribe = cache.subscribe(key, self._on_files)

    def dispose(self) -> None:
        """Drop the cache subscription (the component unmounting)."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    # ---------------- files ----------------
    @property
    def files(self) -> List[MediaFile]:
        if self.project_id is None:
            return self._static_files
        return self.cache.peek(project_files_key(self.project_id)) or []

    def set_files(self, files: Sequence[MediaFile]) -> None:
        """Replace the list of a gallery that is not backed by a project query."""
        self._static_files = list(files)

    def load(self) -> bool:
        """Fetch the project's file list (no-op for a static gallery)."""
        if self.project_id is None:
            return True
        try:
            self.cache.get(project_files_key(self.project_id))
        except MutationFailed as e:
            self._fail(e, "Error")
            return False
        return True

    @property
    def classified(self) -> Classified:
        return classify_cached(self.files)

    @property
    def images(self) -> List[MediaFile]:
        return self.classified.images

    @property
    def videos(self) -> List[MediaFile]:
        return self.classified.videos

    @property
    def documents(self) -> List[MediaFile]:
        return self.classified.documents

    def _on_files(self, _key: Any, files: List[MediaFile]) -> None:
        by_id = {f.id: f for f in files}
        # keep the open item's record current (e.g. annotations just saved)
        cur = self.lightbox.current
        if cur is not None and cur.id in by_id:
            self.lightbox.current = by_id[cur.id]
        kept = [f for f in self.selection.files if f.id in by_id]
        if len(kept) != len(self.selection):
            mode = self.selection.mode
            self.selection.select_all(by_id[f.id] for f in kept)
            self.selection.mode = mode

    # ---------------- view ----------------
    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"view mode must be one of {VIEW_MODES}, got {mode!r}")
        self.view_mode = mode

    def set_active_tab(self, tab: str) -> None:
        if tab not in (PREVIEW_TAB, ANNOTATE_TAB):
            raise ValueError(f"unknown tab {tab!r}")
        cur = self.lightbox.current
        if tab == ANNOTATE_TAB and (cur is None or not cur.is_image):
            return  # annotation is image-only
        self.active_tab = tab

    def card(self, f: MediaFile) -> FileCard:
        return FileCard(
            id=f.id,
            title=f.original_name,
            file_type=f.file_type,
            size=format_file_size(f.file_size),
            date=format_date(f.created_at),
            description=f.description,
            uploader=uploader_label(f, with_email=self.view_mode == "list"),
            annotated=f.is_annotated,
            previewable=f.is_image or f.is_video,
            selectable=self.selection.mode and f.is_image,
            selected=self.selection.is_selected(f),
            url=media_url(f.file_path),
        )

    def cards(self) -> List[FileCard]:
        return [self.card(f) for f in self.files]

    # ---------------- selection ----------------
    def toggle_selection_mode(self) -> bool:
        return self.selection.toggle_mode()

    def toggle_selection(self, f: MediaFile) -> bool:
        return self.selection.toggle(f)

    def select_all_images(self) -> None:
        self.selection.select_all(self.images)

    def clear_selection(self) -> None:
        self.selection.clear()

    @property
    def can_select_all(self) -> bool:
        return not self.selection.all_selected(self.images)

    def click(self, f: MediaFile) -> None:
        """Card click: toggles in selection mode (images only), otherwise opens the lightbox."""
        if self.selection.mode and f.is_image:
            self.selection.toggle(f)
        else:
            self.open_lightbox(f)

    def share_selected(self) -> Optional[List[MediaFile]]:
        if not len(self.selection):
            self._toast(ERROR, "No images selected", "Please select at least one image to share")
            return None
        self.share_dialog_open = True
        return self.selection.files

    def close_share_dialog(self) -> None:
        self.share_dialog_open = False

    # ---------------- lightbox ----------------
    def open_lightbox(self, f: MediaFile) -> int:
        return self.lightbox.open(f)

    def navigate(self, direction: str) -> Optional[MediaFile]:
        return self.lightbox.navigate(direction)

    def close_lightbox(self) -> None:
        self.lightbox.close()

    def rotate(self) -> int:
        """Rotate the open image by 90 degrees; videos and documents never rotate."""
        cur = self.lightbox.current
        if cur is None or not cur.is_image:
            return self.lightbox.rotation.degrees
        return self.lightbox.rotate()

    @property
    def current_media(self) -> Optional[MediaFile]:
        return self.lightbox.current

    @property
    def current_index(self) -> int:
        return self.lightbox.index

    @property
    def rotation(self) -> int:
        return self.lightbox.rotation.degrees

    def preview_url(self) -> Optional[str]:
        cur = self.lightbox.current
        if cur is None:
            return None
        return cur.annotated_image_url or media_url(cur.file_path)

    def render_current(self, h: Optional[int] = None) -> Optional[bytes]:
        """
        JPEG of the open image as the lightbox shows it (annotated version if
        saved, current rotation applied). None when nothing renderable is open
        or the fetch failed.
        """
        cur = self.lightbox.current
        if cur is None or not cur.is_image:
            return None
        url = self.preview_url() or ""
        data = decode_data_url(url)
        if data is None:
            try:
                data = self.gateway.fetch(url)
            except MutationFailed as e:
                self._fail(e, "Error")
                return None
        return render_rotated(data, self.rotation, h)

    def download_current(self) -> Optional[bytes]:
        cur = self.lightbox.current
        if cur is None:
            return None
        try:
            return self.gateway.download(cur)
        except MutationFailed as e:
            self._fail(e, "Error")
            return None

    # ---------------- mutations ----------------
    def delete_file(self, file_id: int) -> bool:
        try:
            self.gateway.delete_file(file_id)
        except MutationFailed as e:
            self._fail(e, "Error")
            return False
        cur = self.lightbox.current
        if cur is not None and cur.id == file_id:
            self.lightbox.close()
        self._toast(SUCCESS, "File deleted", "The file has been successfully deleted.")
        self._invalidate()
        return True

    def save_annotations(self, annotations: List[Dict[str, Any]], annotated_image_url: str,
                         file_id: Optional[int] = None) -> bool:
        if file_id is None:
            cur = self.lightbox.current
            if cur is None or not cur.is_image:
                self._toast(ERROR, "Error", "No image is open for annotation")
                return False
            file_id = cur.id
        try:
            self.gateway.save_annotations(file_id, annotations, annotated_image_url)
        except MutationFailed as e:
            self._fail(e, "Error")
            return False
        self.active_tab = PREVIEW_TAB
        self._toast(SUCCESS, "Success", "Annotations saved successfully")
        self._invalidate()
        return True

    def upload_photo(self, content: bytes, filename: str, description: str = "",
                     content_type: str = "image/jpeg") -> Optional[MediaFile]:
        if self.project_id is None:
            self._toast(ERROR, "Upload Failed", "Photos can only be uploaded to a project gallery")
            return None
        try:
            created = self.gateway.upload_photo(
                self.project_id, content, filename, description, content_type,
            )
        except MutationFailed as e:
            self._fail(e, "Upload Failed")
            return None
        self._toast(SUCCESS, "Success", "Photo uploaded successfully")
        self._invalidate()
        return created

    def upload_captured_photo(self, content: bytes, filename: str = "camera-photo.jpg") -> Optional[MediaFile]:
        return self.upload_photo(content, filename, CAMERA_DESCRIPTION)

    def is_pending(self, op: str) -> bool:
        return self.gateway.is_pending(op)

    # ---------------- helpers ----------------
    def _invalidate(self) -> None:
        if self.project_id is None:
            return
        try:
            self.cache.invalidate(project_files_key(self.project_id))
        except MutationFailed as e:
            # mutation went through; only the refresh failed
            self._fail(e, "Error")

    def _fail(self, e: MutationFailed, title: str) -> None:
        if e.kind == TRANSPORT:
            title = "Connection Failed" if title == "Error" else title
        self._toast(ERROR, title, e.message)

    def _toast(self, kind: str, title: str, message: str) -> None:
        if kind == ERROR:
            self.log.warning(f"toast [{kind}] {title}: {message}")
        else:
            self.log.info(f"toast [{kind}] {title}: {message}")
        self.notifier.notify(kind, title, message)

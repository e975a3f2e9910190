# fieldgallery/services/gateway.py
# Every state-changing call the gallery makes against the file API.
# One request per call: no retries, no backoff, no idempotency key.
#
#   DELETE /api/files/{id}
#   POST   /api/files/annotations           JSON {fileId, annotations, annotatedImageUrl}
#   POST   /api/projects/{projectId}/files  multipart: file, description
#   GET    /api/projects/{projectId}/files  (the query the cache refetches)

from __future__ import annotations
from contextlib import contextmanager
import logging
from typing import Any, Dict, Iterator, List, Optional

import httpx

from fieldgallery.schemas.media import AnnotationPayload, MediaFile
from fieldgallery.utils.http import error_message, media_url

logger = logging.getLogger(__name__)

DELETE = "delete"
ANNOTATE = "annotate"
UPLOAD = "upload"
LIST = "list"
DOWNLOAD = "download"

DEFAULT_MESSAGES = {
    DELETE: "Failed to delete file",
    ANNOTATE: "Failed to save annotations",
    UPLOAD: "Upload failed",
    LIST: "Failed to load files",
    DOWNLOAD: "Failed to download file",
}

TRANSPORT = "transport"
REJECTED = "rejected"


class MutationFailed(Exception):
    """
    A gateway call that did not succeed. `message` is what the user sees;
    `kind` (transport/rejected) and `status_code` are for logs only.
    """
    def __init__(self, message: str, *, op: str, kind: str = REJECTED,
                 status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.op = op
        self.kind = kind
        self.status_code = status_code


class FileGateway:
    def __init__(self, client: httpx.Client) -> None:
        self.client = client
        self._pending: Dict[str, int] = {}

    # ---- pending flags (UI disables the trigger while a call is in flight) ----
    def is_pending(self, op: str) -> bool:
        return self._pending.get(op, 0) > 0

    @contextmanager
    def _in_flight(self, op: str) -> Iterator[None]:
        self._pending[op] = self._pending.get(op, 0) + 1
        try:
            yield
        finally:
            self._pending[op] -= 1

    # ---- transport ----
    def _send(self, op: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug(f"{method} {url}", extra={"op": op})
        with self._in_flight(op):
            try:
                resp = self.client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                logger.warning(f"{op}: transport error on {method} {url}: {e}", extra={"op": op})
                raise MutationFailed(f"Connection failed: {e}", op=op, kind=TRANSPORT) from e
        if resp.is_error:
            msg = error_message(resp, DEFAULT_MESSAGES[op])
            logger.warning(f"{op}: {method} {url} -> {resp.status_code} {msg}", extra={"op": op})
            raise MutationFailed(msg, op=op, status_code=resp.status_code)
        return resp

    @staticmethod
    def _json(op: str, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            raise MutationFailed(DEFAULT_MESSAGES[op], op=op, status_code=resp.status_code) from None

    # ---- operations ----
    def delete_file(self, file_id: int) -> Any:
        resp = self._send(DELETE, "DELETE", f"/api/files/{file_id}")
        return self._json(DELETE, resp)

    def save_annotations(self, file_id: int, annotations: List[Dict[str, Any]],
                         annotated_image_url: str) -> Any:
        payload = AnnotationPayload(
            file_id=file_id, annotations=annotations, annotated_image_url=annotated_image_url,
        )
        resp = self._send(ANNOTATE, "POST", "/api/files/annotations",
                          json=payload.model_dump(by_alias=True))
        return self._json(ANNOTATE, resp)

    def upload_photo(self, project_id: int, content: bytes, filename: str,
                     description: str = "", content_type: str = "image/jpeg") -> MediaFile:
        resp = self._send(
            UPLOAD, "POST", f"/api/projects/{project_id}/files",
            files={"file": (filename, content, content_type)},
            data={"description": description},
        )
        try:
            return MediaFile.model_validate(self._json(UPLOAD, resp))
        except ValueError:
            raise MutationFailed(DEFAULT_MESSAGES[UPLOAD], op=UPLOAD,
                                 status_code=resp.status_code) from None

    def list_project_files(self, project_id: int) -> List[MediaFile]:
        resp = self._send(LIST, "GET", f"/api/projects/{project_id}/files")
        body = self._json(LIST, resp)
        if not isinstance(body, list):
            raise MutationFailed(DEFAULT_MESSAGES[LIST], op=LIST, status_code=resp.status_code)
        try:
            return [MediaFile.model_validate(row) for row in body]
        except ValueError:
            raise MutationFailed(DEFAULT_MESSAGES[LIST], op=LIST,
                                 status_code=resp.status_code) from None

    def fetch(self, url: str) -> bytes:
        """GET a media URL (absolute URLs verbatim, else relative to the API base)."""
        return self._send(DOWNLOAD, "GET", media_url(url)).content

    def download(self, f: MediaFile) -> bytes:
        return self.fetch(f.file_path)

"""
➡️ But : Flux d'upload côté client (machine à états).

    idle → file_selected → (rejected | uploading) → (succeeded | failed)

- select_file() valide la catégorie MIME et le plafond de taille AVANT tout appel réseau.
- submit() envoie le multipart, suit la progression (0–100) et catégorise les échecs.
- Après un échec, titre et description sont conservés : submit() peut être rappelé
  (l'upload repart de zéro, pas de reprise).
"""

import logging
import math
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import filetype
import httpx

from gallery.client.api import GalleryClient
from gallery.features.media.schemas import VideoOut

logger = logging.getLogger(__name__)

MAX_VIDEO_BYTES = 70 * 1024 * 1024  # 70 MB


class UploadState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    REJECTED = "rejected"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class UploadErrorKind(str, Enum):
    TIMEOUT = "timeout"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SERVER_REPORTED = "server_reported"
    NO_RESPONSE = "no_response"
    GENERIC = "generic"


ERROR_MESSAGES = {
    UploadErrorKind.TIMEOUT: "Upload timed out. Try a smaller file or a faster connection.",
    UploadErrorKind.PAYLOAD_TOO_LARGE: "File is too large for the server to accept.",
    UploadErrorKind.SERVER_REPORTED: "Upload failed: {detail}",
    UploadErrorKind.NO_RESPONSE: "No response from server. Check your connection.",
    UploadErrorKind.GENERIC: "Failed to upload {kind}.",
}


class InvalidTransition(RuntimeError):
    pass


@dataclass(frozen=True)
class SelectedFile:
    path: Path
    name: str
    content_type: str
    size: int


def guess_content_type(path: Path) -> str:
    """Type réel (filetype) en priorité, puis l'extension, comme le navigateur."""
    kind = filetype.guess(str(path))
    if kind is not None:
        return kind.mime
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def _percent(loaded: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, int(math.floor(loaded * 100 / total + 0.5)))


def _server_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or str(response.status_code)
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or response.status_code)
    return str(response.status_code)


class UploadFlow:
    def __init__(
        self,
        client: GalleryClient,
        *,
        kind: str = "video",
        max_bytes: Optional[int] = MAX_VIDEO_BYTES,
        on_progress: Optional[Callable[[int], None]] = None,
        home_url: str = "/home",
    ):
        if kind not in ("video", "image"):
            raise ValueError(f"Unknown upload kind: {kind}")
        self.client = client
        self.kind = kind
        self.max_bytes = max_bytes
        self.on_progress = on_progress
        self.home_url = home_url

        self.state = UploadState.IDLE
        self.file: Optional[SelectedFile] = None
        self.title = ""
        self.description = ""
        self.progress = 0
        self.message: Optional[str] = None
        self.error_kind: Optional[UploadErrorKind] = None
        self.result: Optional[Union[VideoOut, str]] = None
        self.navigate_to: Optional[str] = None

    # ---------- Sélection ----------

    def select_file(self, path: Union[str, Path]) -> UploadState:
        if self.state == UploadState.UPLOADING:
            raise InvalidTransition("Cannot change file while uploading")
        path = Path(path)
        content_type = guess_content_type(path)
        size = path.stat().st_size
        self.file = SelectedFile(path=path, name=path.name, content_type=content_type, size=size)
        self.error_kind = None
        self.progress = 0

        if not content_type.startswith(f"{self.kind}/"):
            return self._reject(f"Please select a {self.kind} file")
        if self.max_bytes is not None and size > self.max_bytes:
            return self._reject("File size too large")

        self.state = UploadState.FILE_SELECTED
        self.message = None
        return self.state

    def _reject(self, message: str) -> UploadState:
        logger.info("Rejected %s: %s", self.file.name if self.file else "?", message)
        self.state = UploadState.REJECTED
        self.message = message
        return self.state

    # ---------- Envoi ----------

    def submit(self, title: Optional[str] = None, description: Optional[str] = None) -> UploadState:
        if self.state not in (UploadState.FILE_SELECTED, UploadState.FAILED):
            raise InvalidTransition(f"Cannot submit from state {self.state.value}")
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if self.kind == "video" and not self.title.strip():
            self.message = "Title is required"
            return self.state

        self.state = UploadState.UPLOADING
        self.progress = 0
        self.message = None
        self.error_kind = None
        try:
            self.result = self._send()
        except httpx.TimeoutException:
            return self._fail(UploadErrorKind.TIMEOUT)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 413:
                return self._fail(UploadErrorKind.PAYLOAD_TOO_LARGE)
            return self._fail(UploadErrorKind.SERVER_REPORTED, detail=_server_detail(e.response))
        except httpx.TransportError:
            return self._fail(UploadErrorKind.NO_RESPONSE)
        except (httpx.HTTPError, ValueError, KeyError, OSError) as e:
            logger.warning("Upload failed: %s", e)
            return self._fail(UploadErrorKind.GENERIC)

        self._set_progress(100)
        self.state = UploadState.SUCCEEDED
        self.navigate_to = self.home_url
        return self.state

    def _send(self) -> Union[VideoOut, str]:
        assert self.file is not None
        on_progress = lambda loaded, total: self._set_progress(_percent(loaded, total))
        if self.kind == "video":
            return self.client.upload_video(
                self.file.path,
                title=self.title.strip(),
                description=self.description,
                original_size=self.file.size,
                content_type=self.file.content_type,
                on_progress=on_progress,
            )
        return self.client.upload_image(self.file.path, content_type=self.file.content_type, on_progress=on_progress)

    def _set_progress(self, percent: int) -> None:
        if percent == self.progress:
            return
        self.progress = percent
        if self.on_progress is not None:
            self.on_progress(percent)

    def _fail(self, kind: UploadErrorKind, *, detail: str = "") -> UploadState:
        self.state = UploadState.FAILED
        self.error_kind = kind
        self.message = ERROR_MESSAGES[kind].format(detail=detail, kind=self.kind)
        self.progress = 0
        logger.info("Upload failed (%s): %s", kind.value, self.message)
        return self.state

"""
Client HTTP de la galerie (httpx), utilisé par les flux d'upload et de rendu.

Les erreurs HTTP remontent en httpx.HTTPStatusError, les erreurs réseau en
httpx.TransportError : c'est aux flux de les catégoriser.
"""

import io
import logging
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union

import httpx

from gallery.features.media.schemas import VideoOut

logger = logging.getLogger(__name__)

# Un upload bloque la requête pendant tout l'aller-retour Cloudinary
DEFAULT_TIMEOUT = httpx.Timeout(300.0, connect=10.0)

ProgressCallback = Callable[[int, int], None]  # (octets envoyés, total)


class ProgressReader(io.RawIOBase):
    """Enveloppe un fichier binaire et signale chaque lecture faite par le transport."""

    def __init__(self, raw: BinaryIO, total: int, on_progress: Optional[ProgressCallback] = None):
        super().__init__()
        self._raw = raw
        self.total = total
        self.loaded = 0
        self._on_progress = on_progress

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self._raw.seekable()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        position = self._raw.seek(offset, whence)
        if whence == io.SEEK_SET and offset == 0:
            # le transport rembobine avant d'envoyer
            self.loaded = 0
        return position

    def tell(self) -> int:
        return self._raw.tell()

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        if chunk:
            self.loaded += len(chunk)
            if self._on_progress is not None:
                self._on_progress(min(self.loaded, self.total), self.total)
        return chunk

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        buffer[: len(chunk)] = chunk
        return len(chunk)


class GalleryClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        cloud_name: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Union[httpx.Timeout, float] = DEFAULT_TIMEOUT,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.cloud_name = cloud_name
        self._http = httpx.Client(base_url=base_url, headers=headers, transport=transport, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GalleryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------- Listing / delete ----------

    def list_videos(self) -> List[VideoOut]:
        response = self._http.get("/api/videos")
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError("Unexpected response format")
        return [VideoOut.model_validate(item) for item in data]

    def delete_video(self, public_id: str) -> Dict[str, Any]:
        response = self._http.request("DELETE", "/api/videos", json={"publicId": public_id})
        response.raise_for_status()
        return response.json()

    # ---------- Upload ----------

    def _post_file(
        self,
        url: str,
        path: Path,
        content_type: str,
        *,
        data: Optional[Dict[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        path = Path(path)
        total = path.stat().st_size
        with path.open("rb") as fh:
            reader = ProgressReader(fh, total, on_progress)
            response = self._http.post(url, data=data, files={"file": (path.name, reader, content_type)})
        response.raise_for_status()
        return response.json()

    def upload_video(
        self,
        path: Path,
        *,
        title: str,
        description: str = "",
        original_size: int,
        content_type: str = "video/mp4",
        on_progress: Optional[ProgressCallback] = None,
    ) -> VideoOut:
        payload = self._post_file(
            "/api/video-upload",
            path,
            content_type,
            data={"title": title, "description": description, "originalSize": str(original_size)},
            on_progress=on_progress,
        )
        return VideoOut.model_validate(payload["video"])

    def upload_image(
        self,
        path: Path,
        *,
        content_type: str = "image/png",
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        payload = self._post_file("/api/image-upload", path, content_type, on_progress=on_progress)
        return payload["publicId"]

    # ---------- Assets ----------

    def fetch_bytes(self, url: str) -> bytes:
        """GET absolu (asset Cloudinary), hors base_url."""
        response = self._http.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content

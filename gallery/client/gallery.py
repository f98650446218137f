"""
➡️ But : Flux de rendu de la galerie côté client.

- load() récupère le listing une seule fois.
- Chaque vidéo devient une VideoCard : valeurs dérivées (compression, tailles
  lisibles, durée m:ss) + URLs de transformation Cloudinary.
- download() : handler fourni par l'appelant (URL fl_attachment) ou
  téléchargement direct, avec repli sur l'ouverture dans un nouvel onglet.
- delete() : confirmation, appel de l'endpoint, puis retrait de la seule carte
  concernée (pas de rechargement complet).
"""

import logging
import math
import os
import re
import tempfile
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx

from gallery.client.api import GalleryClient
from gallery.features.media.schemas import VideoOut
from gallery.media.urls import attachment_url, video_full_url, video_preview_url, video_thumbnail_url

logger = logging.getLogger(__name__)

SIZE_UNITS = ("B", "kB", "MB", "GB", "TB")


# -----------------------------
# Valeurs dérivées
# -----------------------------
def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compression_percentage(original_size: int, compressed_size: int) -> Optional[int]:
    """Gain en %, None si la taille d'origine est nulle (affiché "n/a")."""
    if original_size <= 0:
        return None
    return _round_half_up((1 - compressed_size / original_size) * 100)


def format_size(size: int) -> str:
    value = float(size)
    unit = SIZE_UNITS[0]
    for unit in SIZE_UNITS:
        if abs(value) < 1000 or unit == SIZE_UNITS[-1]:
            break
        value /= 1000
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}"


def video_filename(title: str) -> str:
    """Nom de fichier local sûr : jamais de séparateur de chemin ni de nom vide."""
    safe = re.sub(r"[^\w\- .]+", "_", title).strip(" .")
    return f"{safe or 'video'}.mp4"


def format_duration(seconds: float) -> str:
    minutes = int(seconds // 60)
    remaining = _round_half_up(seconds - minutes * 60)
    if remaining == 60:
        minutes, remaining = minutes + 1, 0
    return f"{minutes}:{remaining:02d}"


# -----------------------------
# Thèmes : table de styles pure
# -----------------------------
THEME_STYLES: Dict[str, Dict[str, str]] = {
    "dark": {
        "card": "bg-gray-800 border-gray-700",
        "title": "text-white",
        "text": "text-gray-300",
        "meta": "text-gray-400",
        "highlight": "text-purple-400",
        "button": "bg-gradient-to-r from-purple-600 to-pink-600 text-white",
    },
    "ocean": {
        "card": "bg-white border-blue-200",
        "title": "text-blue-900",
        "text": "text-blue-800",
        "meta": "text-blue-600",
        "highlight": "text-blue-600",
        "button": "bg-gradient-to-r from-blue-500 to-cyan-500 text-white",
    },
    "forest": {
        "card": "bg-white border-green-200",
        "title": "text-green-900",
        "text": "text-green-800",
        "meta": "text-green-600",
        "highlight": "text-green-600",
        "button": "bg-gradient-to-r from-green-600 to-emerald-600 text-white",
    },
    "default": {
        "card": "bg-white border-gray-200",
        "title": "text-gray-900",
        "text": "text-gray-600",
        "meta": "text-gray-500",
        "highlight": "text-indigo-600",
        "button": "bg-gradient-to-r from-indigo-500 to-purple-500 text-white",
    },
}
THEME_STYLES["dracula"] = THEME_STYLES["dark"]


def theme_styles(theme: Optional[str], system_theme: Optional[str] = None) -> Dict[str, str]:
    current = system_theme if theme == "system" else theme
    return THEME_STYLES.get(current or "default", THEME_STYLES["default"])


# -----------------------------
# Carte vidéo
# -----------------------------
@dataclass(frozen=True)
class VideoCard:
    video: VideoOut
    compression: Optional[int]
    original_size_label: str
    compressed_size_label: str
    duration_label: str
    thumbnail_url: str
    preview_url: str
    full_url: str

    @property
    def saved_label(self) -> str:
        return "n/a" if self.compression is None else f"{self.compression}%"

    @classmethod
    def from_video(cls, video: VideoOut, *, cloud_name: str) -> "VideoCard":
        return cls(
            video=video,
            compression=compression_percentage(video.original_size, video.compressed_size),
            original_size_label=format_size(video.original_size),
            compressed_size_label=format_size(video.compressed_size),
            duration_label=format_duration(video.duration),
            thumbnail_url=video_thumbnail_url(video.public_id, cloud_name=cloud_name),
            preview_url=video_preview_url(video.public_id, cloud_name=cloud_name),
            full_url=video_full_url(video.public_id, cloud_name=cloud_name),
        )


DownloadHandler = Callable[[str, str], None]  # (url fl_attachment, titre)


class GalleryView:
    def __init__(
        self,
        client: GalleryClient,
        *,
        cloud_name: Optional[str] = None,
        on_download: Optional[DownloadHandler] = None,
        confirm: Callable[[str], bool] = lambda message: False,
        opener: Callable[[str], object] = webbrowser.open_new_tab,
    ):
        self.client = client
        self.cloud_name = cloud_name or client.cloud_name
        if not self.cloud_name:
            raise ValueError("cloud_name is required to build asset URLs")
        self.on_download = on_download
        self.confirm = confirm
        self.opener = opener

        self.cards: List[VideoCard] = []
        self.loaded = False
        self.error: Optional[str] = None
        self.message: Optional[str] = None

    def load(self) -> List[VideoCard]:
        if self.loaded:
            return self.cards
        try:
            videos = self.client.list_videos()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Fetch failed: %s", e)
            self.error = "Failed to fetch videos"
        else:
            self.cards = [VideoCard.from_video(v, cloud_name=self.cloud_name) for v in videos]
        self.loaded = True
        return self.cards

    # ---------- Téléchargement ----------

    def download(self, card: VideoCard, dest_dir: Path) -> Optional[Path]:
        title = card.video.title
        if self.on_download is not None:
            self.on_download(attachment_url(card.full_url, title), title)
            self.message = f"Download started: {title}"
            return None

        try:
            data = self.client.fetch_bytes(card.full_url)
        except httpx.HTTPError as e:
            return self._open_instead(card, e)

        target = Path(dest_dir) / video_filename(title)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".part")
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, target)
        except OSError as e:
            return self._open_instead(card, e)
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
        return target

    def _open_instead(self, card: VideoCard, error: Exception) -> None:
        logger.warning("Download failed for %s: %s", card.video.public_id, error)
        self.opener(card.full_url)
        return None

    # ---------- Suppression ----------

    def delete(self, card: VideoCard) -> bool:
        if not self.confirm("Are you sure you want to delete this video?"):
            return False
        try:
            self.client.delete_video(card.video.public_id)
        except httpx.HTTPError as e:
            logger.warning("Delete failed for %s: %s", card.video.public_id, e)
            self.message = "Failed to delete video"
            return False
        self.cards = [c for c in self.cards if c.video.public_id != card.video.public_id]
        self.message = "Video deleted"
        return True

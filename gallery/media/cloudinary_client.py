"""
➡️ But : Encapsuler les appels au service média (Cloudinary) : upload, suppression.

Le SDK est synchrone : les appels passent par le threadpool de Starlette, ce qui
donne une API async qui renvoie un résultat ou lève UpstreamFailure.

Les identifiants sont passés à chaque appel : la config globale du SDK
(cloudinary.config) n'est jamais modifiée.
"""

import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from gallery.core.config import Settings
from gallery.core.errors import ConfigurationError, UpstreamFailure

logger = logging.getLogger(__name__)

# Format de sortie cohérent + qualité auto pour toutes les vidéos
VIDEO_TRANSFORMATION = [{"quality": "auto", "fetch_format": "mp4"}]


@dataclass(frozen=True)
class UploadResult:
    public_id: str
    bytes: int
    duration: Optional[float] = None
    resource_type: str = "video"
    secure_url: Optional[str] = None
    format: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "UploadResult":
        if not data.get("public_id"):
            raise UpstreamFailure("Media service returned no public_id")
        return cls(
            public_id=data["public_id"],
            bytes=int(data.get("bytes") or 0),
            duration=data.get("duration"),
            resource_type=data.get("resource_type", "video"),
            secure_url=data.get("secure_url"),
            format=data.get("format"),
        )


class CloudinaryMediaClient:
    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str, secure: bool = True):
        self.cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self.secure = secure

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryMediaClient":
        if not settings.cloudinary_configured:
            raise ConfigurationError()
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
        )

    def _credentials(self) -> Dict[str, Any]:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self._api_key,
            "api_secret": self._api_secret,
            "secure": self.secure,
        }

    # ---------- Upload ----------

    async def upload_video(self, data: bytes, *, folder: str) -> UploadResult:
        return await self._upload(
            data,
            resource_type="video",
            folder=folder,
            transformation=VIDEO_TRANSFORMATION,
        )

    async def upload_image(self, data: bytes, *, folder: str) -> UploadResult:
        return await self._upload(data, resource_type="image", folder=folder)

    async def _upload(self, data: bytes, **options) -> UploadResult:
        try:
            response = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                **options,
                **self._credentials(),
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary upload failed (%s, %d bytes): %s", options.get("resource_type"), len(data), e)
            raise UpstreamFailure(f"Media upload failed: {e}") from e
        result = UploadResult.from_response(response)
        logger.info("Uploaded %s %s (%d bytes)", result.resource_type, result.public_id, result.bytes)
        return result

    # ---------- Delete ----------

    async def destroy(self, public_id: str, *, resource_type: str = "video") -> bool:
        """
        True si l'asset a été supprimé, False s'il n'existait déjà plus.
        Toute autre réponse -> UpstreamFailure.
        """
        try:
            response = await run_in_threadpool(
                cloudinary.uploader.destroy,
                public_id,
                resource_type=resource_type,
                invalidate=True,
                **self._credentials(),
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary destroy failed for %s: %s", public_id, e)
            raise UpstreamFailure(f"Media delete failed: {e}") from e

        result = (response or {}).get("result")
        if result == "ok":
            return True
        if result == "not found":
            logger.warning("Remote asset %s already gone", public_id)
            return False
        logger.error("Unexpected destroy result for %s: %r", public_id, response)
        raise UpstreamFailure(f"Media delete failed: {result}")

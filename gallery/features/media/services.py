import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError

from gallery.core.config import Settings
from gallery.core.errors import (
    BadRequest,
    DuplicateAsset,
    PayloadTooLarge,
    PersistenceFailure,
    UpstreamFailure,
)
from gallery.db.models.base import utcnow
from gallery.db.models.videos import VideoRecord, STATUS_PENDING_DELETE
from gallery.db.repositories.videos import Keyset, VideoRepository
from gallery.media.cloudinary_client import CloudinaryMediaClient
from gallery.utils.media_files import (
    ALLOWED_IMAGE_MIME,
    ALLOWED_VIDEO_MIME,
    FileTooLarge,
    parse_original_size,
    validate_bytes,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Curseur de pagination (keyset opaque)
# -----------------------------
def encode_cursor(record: VideoRecord) -> str:
    created_at = record.created_at
    if created_at.tzinfo is None:
        # SQLite rend des dates naïves : elles sont écrites en UTC
        created_at = created_at.replace(tzinfo=timezone.utc)
    raw = f"{created_at.astimezone(timezone.utc).isoformat()}|{record.id}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(cursor: str) -> Keyset:
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        created_at, _, id_ = base64.urlsafe_b64decode(padded.encode()).decode().partition("|")
        if not id_:
            raise ValueError("missing id")
        when = datetime.fromisoformat(created_at)
        if when.tzinfo is None:
            raise ValueError("naive timestamp")
        return when.astimezone(timezone.utc), id_
    except (ValueError, binascii.Error, UnicodeDecodeError):
        raise BadRequest("Invalid cursor")


async def _read_validated(file: Optional[UploadFile], *, max_mb: int, allowed_mime) -> Tuple[bytes, str]:
    if file is None:
        raise BadRequest("No file provided")
    raw = await file.read()
    try:
        mime, _ = validate_bytes(raw, max_mb=max_mb, allowed_mime=allowed_mime)
    except FileTooLarge as e:
        raise PayloadTooLarge(str(e))
    except ValueError as e:
        raise BadRequest(str(e))
    return raw, mime


class VideoService:
    """
    Service Vidéos : orchestre repository + Cloudinary.
    Aucune logique SQL directe ici, erreurs typées (gallery.core.errors).
    """

    def __init__(self, *, repo: VideoRepository, media: Optional[CloudinaryMediaClient], settings: Settings):
        self.repo = repo
        self.media = media
        self.settings = settings

    # ---------- Upload ----------

    async def upload(
        self,
        file: Optional[UploadFile],
        *,
        title: Optional[str],
        description: Optional[str],
        original_size: Optional[str],
    ) -> VideoRecord:
        if file is None:
            raise BadRequest("No file provided")
        title = (title or "").strip()
        if not title:
            raise BadRequest("Title is required")

        raw, mime = await _read_validated(
            file, max_mb=self.settings.MAX_VIDEO_UPLOAD_MB, allowed_mime=ALLOWED_VIDEO_MIME
        )
        try:
            declared_size = parse_original_size(original_size, fallback=len(raw))
        except ValueError as e:
            raise BadRequest(str(e))

        result = await self.media.upload_video(raw, folder=self.settings.VIDEO_FOLDER)

        # Même asset déjà référencé : on ne touche pas au distant (il appartient à l'autre ligne)
        if self.repo.get_by_public_id(result.public_id):
            raise DuplicateAsset(f"Video {result.public_id} already exists")

        try:
            video = self.repo.create(
                title=title,
                description=(description or "").strip() or None,
                public_id=result.public_id,
                original_size=declared_size,
                compressed_size=result.bytes,
                duration=result.duration or 0,
            )
        except SQLAlchemyError as e:
            logger.error("Insert failed for uploaded video %s: %s", result.public_id, e)
            await self._compensate_upload(result.public_id)
            raise PersistenceFailure("Video uploaded but could not be saved") from e

        logger.info(
            "Video %s saved (%s, %d -> %d bytes, %.1fs)",
            video.public_id, mime, video.original_size, video.compressed_size, video.duration,
        )
        return video

    async def _compensate_upload(self, public_id: str) -> None:
        try:
            await self.media.destroy(public_id, resource_type="video")
        except UpstreamFailure:
            # À réconcilier à la main : l'asset distant n'a plus de ligne locale
            logger.error("Compensation failed, orphaned remote video %s", public_id)
        else:
            logger.info("Compensated upload: remote video %s removed", public_id)

    # ---------- Listing ----------

    def list(self, *, limit: Optional[int] = None, cursor: Optional[str] = None) -> Tuple[List[VideoRecord], Optional[str]]:
        """
        Retourne (vidéos, curseur suivant). Sans limit : toute la table (curseur None).
        """
        after = decode_cursor(cursor) if cursor else None
        if limit is None:
            return list(self.repo.list_recent(after=after)), None

        rows = list(self.repo.list_recent(limit=limit + 1, after=after))
        page, has_more = rows[:limit], len(rows) > limit
        return page, (encode_cursor(page[-1]) if has_more else None)

    # ---------- Delete (deux phases) ----------

    async def delete(self, public_id: str) -> Tuple[bool, bool]:
        """
        1) marque la ligne pending_delete, 2) supprime l'asset distant,
        3) supprime la ligne. Retourne (remote_deleted, local_deleted).
        Idempotent : un public_id inconnu ou déjà supprimé n'est pas une erreur.
        """
        video = self.repo.get_by_public_id(public_id)
        if video is not None and video.status != STATUS_PENDING_DELETE:
            try:
                self.repo.update(video, status=STATUS_PENDING_DELETE, updated_at=utcnow())
            except SQLAlchemyError as e:
                raise PersistenceFailure("Could not mark video for deletion") from e

        try:
            remote_deleted = await self.media.destroy(public_id, resource_type="video")
        except UpstreamFailure:
            if video is not None:
                logger.warning("Video %s left pending_delete after remote failure", public_id)
            raise

        local_deleted = False
        if video is not None:
            try:
                self.repo.delete(video)
            except SQLAlchemyError as e:
                logger.error("Remote video %s deleted but local delete failed: %s", public_id, e)
                raise PersistenceFailure("Remote asset deleted but record could not be removed") from e
            local_deleted = True

        logger.info("Video %s deleted (remote=%s, local=%s)", public_id, remote_deleted, local_deleted)
        return remote_deleted, local_deleted

    async def reconcile_pending_deletes(self) -> int:
        """Termine les suppressions interrompues. Retourne le nombre de lignes résolues."""
        resolved = 0
        pending: Sequence[VideoRecord] = self.repo.list_pending_delete()
        for video in pending:
            try:
                await self.media.destroy(video.public_id, resource_type="video")
            except UpstreamFailure:
                logger.warning("Reconcile: remote delete still failing for %s", video.public_id)
                continue
            try:
                self.repo.delete(video)
            except SQLAlchemyError as e:
                logger.error("Reconcile: local delete failed for %s: %s", video.public_id, e)
                continue
            resolved += 1
        logger.info("Reconcile: %d/%d pending deletes resolved", resolved, len(pending))
        return resolved


class ImageService:
    """Images : upload direct vers Cloudinary, sans persistance."""

    def __init__(self, *, media: CloudinaryMediaClient, settings: Settings):
        self.media = media
        self.settings = settings

    async def upload(self, file: Optional[UploadFile]) -> str:
        raw, _ = await _read_validated(
            file, max_mb=self.settings.MAX_IMAGE_UPLOAD_MB, allowed_mime=ALLOWED_IMAGE_MIME
        )
        result = await self.media.upload_image(raw, folder=self.settings.IMAGE_FOLDER)
        return result.public_id

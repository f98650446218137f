"""
Termine les suppressions interrompues (lignes restées pending_delete).

    python -m scripts.reconcile
"""

import asyncio
import logging

from gallery.core.config import settings
from gallery.core.logging import configure_logging
from gallery.db.repositories.videos import VideoRepository
from gallery.db.session import Database
from gallery.features.media.services import VideoService
from gallery.media.cloudinary_client import CloudinaryMediaClient

logger = logging.getLogger("reconcile")


async def run_reconcile() -> int:
    media = CloudinaryMediaClient.from_settings(settings)
    db = Database(settings.DATABASE_URL)
    db.connect()
    try:
        with db.session() as session:
            service = VideoService(repo=VideoRepository(session), media=media, settings=settings)
            return await service.reconcile_pending_deletes()
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    resolved = asyncio.run(run_reconcile())
    logger.info("%d record(s) reconciled", resolved)

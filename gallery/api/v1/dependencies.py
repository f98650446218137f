"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_current_session() : session utilisateur (401 sinon).

get_media_client() : client Cloudinary construit depuis les settings de l'app (500 si non configuré).

get_video_service() : crée un VideoService à partir d'une session DB + client média.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à remplacer dans les tests (app.dependency_overrides).
"""

from fastapi import Depends, Request
from sqlmodel import Session

from gallery.core.config import Settings
from gallery.core.errors import Unauthorized
from gallery.db.session import get_session
from gallery.db.repositories.videos import VideoRepository
from gallery.features.media.services import ImageService, VideoService
from gallery.media.cloudinary_client import CloudinaryMediaClient
from gallery.security.sessions import SessionUser, resolve_session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# -----------------------------
# Authentication data
# -----------------------------
def get_current_session(request: Request, settings: Settings = Depends(get_settings)) -> SessionUser:
    # Déjà résolue par le middleware d'accès dans le cas normal
    user = getattr(request.state, "session_user", None)
    if user is None:
        user = resolve_session(request, settings.jwt_settings, settings.AUTH_SESSION_COOKIE)
    if user is None:
        raise Unauthorized("Unauthorized user")
    return user


# -----------------------------
# Repositories / clients
# -----------------------------
def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


def get_media_client(settings: Settings = Depends(get_settings)) -> CloudinaryMediaClient:
    # Échoue fermé avant tout travail si les 3 secrets ne sont pas là
    return CloudinaryMediaClient.from_settings(settings)


# -----------------------------
# Media services
# -----------------------------
def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    media: CloudinaryMediaClient = Depends(get_media_client),
    settings: Settings = Depends(get_settings),
) -> VideoService:
    return VideoService(repo=video_repo, media=media, settings=settings)


def get_video_listing_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    settings: Settings = Depends(get_settings),
) -> VideoService:
    # Lecture seule : le listing public ne dépend pas des secrets Cloudinary
    return VideoService(repo=video_repo, media=None, settings=settings)


def get_image_service(
    media: CloudinaryMediaClient = Depends(get_media_client),
    settings: Settings = Depends(get_settings),
) -> ImageService:
    return ImageService(media=media, settings=settings)

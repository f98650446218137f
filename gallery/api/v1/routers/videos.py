from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from gallery.api.v1.dependencies import (
    get_current_session,
    get_video_service,
    get_video_listing_service,
)
from gallery.features.media.schemas import VideoDeleteIn, VideoDeleteOut, VideoOut, VideoUploadOut
from gallery.features.media.services import VideoService
from gallery.security.sessions import SessionUser

router = APIRouter(tags=["videos"])

_ERRORS = {
    400: {"description": "Requête invalide (fichier manquant, titre vide...)"},
    401: {"description": "Non authentifié"},
    500: {"description": "Configuration ou base de données"},
    502: {"description": "Échec côté Cloudinary"},
}


@router.post(
    "/video-upload",
    summary="Uploader une vidéo (Back → Cloudinary → SQLite)",
    description="Reçoit un fichier vidéo, le transmet à Cloudinary (mp4, qualité auto) et enregistre ses métadonnées.",
    response_model=VideoUploadOut,
    responses={**_ERRORS, 409: {"description": "public_id déjà enregistré"}, 413: {"description": "Fichier trop gros"}},
)
async def upload_video(
    session_user: SessionUser = Depends(get_current_session),
    video_svc: VideoService = Depends(get_video_service),
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    original_size: Optional[str] = Form(None, alias="originalSize"),
):
    video = await video_svc.upload(file, title=title, description=description, original_size=original_size)
    return VideoUploadOut(video=VideoOut.model_validate(video))


@router.get(
    "/videos",
    summary="Lister les vidéos (public)",
    description="Toutes les vidéos, les plus récentes d'abord. `limit` active la pagination (en-tête X-Next-Cursor).",
    response_model=List[VideoOut],
)
def list_videos(
    response: Response,
    limit: Optional[int] = Query(None, ge=1, le=100, description="Taille de page"),
    cursor: Optional[str] = Query(None, description="Curseur renvoyé dans X-Next-Cursor"),
    video_svc: VideoService = Depends(get_video_listing_service),
):
    videos, next_cursor = video_svc.list(limit=limit, cursor=cursor)
    if next_cursor:
        response.headers["X-Next-Cursor"] = next_cursor
    return [VideoOut.model_validate(v) for v in videos]


@router.delete(
    "/videos",
    summary="Supprimer une vidéo (asset Cloudinary + ligne DB)",
    description="Suppression en deux phases, idempotente.",
    response_model=VideoDeleteOut,
    status_code=status.HTTP_200_OK,
    responses=_ERRORS,
)
@router.delete("/videos/delete", include_in_schema=False, response_model=VideoDeleteOut)
async def delete_video(
    payload: VideoDeleteIn,
    session_user: SessionUser = Depends(get_current_session),
    video_svc: VideoService = Depends(get_video_service),
):
    remote_deleted, local_deleted = await video_svc.delete(payload.public_id)
    return VideoDeleteOut(
        public_id=payload.public_id,
        remote_deleted=remote_deleted,
        local_deleted=local_deleted,
    )

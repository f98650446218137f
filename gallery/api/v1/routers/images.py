from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from gallery.api.v1.dependencies import get_current_session, get_image_service
from gallery.features.media.schemas import ImageUploadOut
from gallery.features.media.services import ImageService
from gallery.security.sessions import SessionUser

router = APIRouter(tags=["images"])


# -----------------------------
# Upload (sans persistance)
# -----------------------------
@router.post(
    "/image-upload",
    summary="Uploader une image (Back → Cloudinary)",
    description="Reçoit une image, la charge dans le dossier images de Cloudinary et renvoie son publicId.",
    response_model=ImageUploadOut,
    responses={
        400: {"description": "Fichier manquant ou invalide"},
        401: {"description": "Non authentifié"},
        413: {"description": "Fichier trop gros"},
        502: {"description": "Échec côté Cloudinary"},
    },
)
async def upload_image(
    session_user: SessionUser = Depends(get_current_session),
    img_svc: ImageService = Depends(get_image_service),
    file: Optional[UploadFile] = File(None),
):
    public_id = await img_svc.upload(file)
    return ImageUploadOut(public_id=public_id)

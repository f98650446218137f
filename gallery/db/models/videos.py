from typing import Optional
from sqlmodel import Field
from sqlalchemy import BigInteger, Column

from .base import BaseModelDB

STATUS_READY = "ready"
STATUS_PENDING_DELETE = "pending_delete"


class VideoRecord(BaseModelDB, table=True):
    """Vidéos stockées chez Cloudinary, référencées en DB par leur public_id."""

    __tablename__ = "videos"

    title: str = Field(description="Titre saisi par l'utilisateur")
    description: Optional[str] = Field(default=None, description="Description libre")
    public_id: str = Field(index=True, unique=True, description="Identifiant de l'asset chez Cloudinary")
    original_size: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Taille source en octets (mesurée côté client)",
    )
    compressed_size: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Taille après transformation en octets (rapportée par Cloudinary)",
    )
    duration: float = Field(default=0, description="Durée en secondes")
    status: str = Field(default=STATUS_READY, index=True, description="ready | pending_delete")

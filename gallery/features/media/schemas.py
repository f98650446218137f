from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Sur le fil : clés camelCase (publicId, originalSize...), côté Python : snake_case
_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------- IN ----------

class VideoDeleteIn(BaseModel):
    model_config = _camel

    public_id: str = Field(min_length=1, description="Identifiant Cloudinary de la vidéo")


# ---------- OUT ----------

class VideoOut(BaseModel):
    model_config = _camel

    id: str
    title: str
    description: Optional[str] = None
    public_id: str
    original_size: int
    compressed_size: int
    duration: float = 0
    created_at: datetime


class VideoUploadOut(BaseModel):
    success: bool = True
    video: VideoOut


class ImageUploadOut(BaseModel):
    model_config = _camel

    public_id: str


class VideoDeleteOut(BaseModel):
    model_config = _camel

    success: bool = True
    public_id: str
    remote_deleted: bool
    local_deleted: bool

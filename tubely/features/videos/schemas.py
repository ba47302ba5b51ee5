import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class VideoCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)


class VideoOut(BaseModel):
    """
    Métadonnées d'une vidéo. `video_url` et `thumbnail_url` sont des URLs
    signées (temporaires) calculées à la lecture.
    """
    id: uuid.UUID
    title: str
    description: str
    owner_id: int
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

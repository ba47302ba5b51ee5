import uuid
from typing import Optional

from sqlmodel import Field
from sqlalchemy import Column, ForeignKey, Integer

from .base import TimestampedModel


class Video(TimestampedModel, table=True):
    """
    Vidéo d'un utilisateur.

    `video_url` / `thumbnail_url` ne sont PAS des URLs : ils contiennent une
    référence `bucket,key` (voir utils.s3.StoredObjectRef), transformée en URL
    signée à la lecture seulement.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(description="Titre de la vidéo")
    description: str = Field(default="", description="Description libre")

    thumbnail_url: Optional[str] = Field(default=None, description="Référence bucket,key de la miniature")
    video_url: Optional[str] = Field(default=None, description="Référence bucket,key de la vidéo traitée")

    owner_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id"),
            nullable=False,
            index=True,
        ),
        description="Propriétaire de la vidéo",
    )

from typing import Sequence
from sqlmodel import select

from tubely.db.repositories.base import BaseRepository
from tubely.db.models.videos import Video


class VideoRepository(BaseRepository[Video]):
    """CRUD Vidéos + requêtes spécifiques."""
    model = Video

    def list_for_owner(self, owner_id: int, offset: int = 0, limit: int = 100) -> Sequence[Video]:
        return self.session.exec(
            select(self.model)
            .where(self.model.owner_id == owner_id)
            .order_by(self.model.created_at.desc())
            .offset(offset)
            .limit(limit)
        ).all()

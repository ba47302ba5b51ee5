from typing import Optional
from sqlmodel import select

from tubely.db.repositories.base import BaseRepository
from tubely.db.models.users import User

class UserRepository(BaseRepository[User]):
    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(
            select(self.model).where(self.model.username == username)
        ).first()

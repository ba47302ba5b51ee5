from sqlmodel import Field

from .base import BaseModelDB


class User(BaseModelDB, table=True):
    username: str = Field(index=True, unique=True)
    hashed_password: str

from typing import Optional
from sqlmodel import Field

from .timestamps import Timestamped


class User(Timestamped, table=True):
    __tablename__ = "Users"

    user_id: Optional[int] = Field(default=None, primary_key=True)

    username: str = Field(max_length=255)
    # Login key, indexed but deliberately not unique
    email: str = Field(max_length=255, index=True)
    password_hash: str = Field(max_length=255)

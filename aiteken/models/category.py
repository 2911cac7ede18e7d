from typing import Optional
from sqlmodel import Field

from .timestamps import Timestamped


class Category(Timestamped, table=True):
    __tablename__ = "Categories"

    category_id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[int] = Field(default=None, foreign_key="Users.user_id")

    category_name: str = Field(max_length=255)

from typing import Optional
from sqlmodel import Field

from .timestamps import Timestamped


class PaymentMethod(Timestamped, table=True):
    __tablename__ = "PaymentMethods"

    payment_method_id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[int] = Field(default=None, foreign_key="Users.user_id")

    payment_method_name: str = Field(max_length=255)

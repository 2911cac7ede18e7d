import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlalchemy import Text
from sqlmodel import Field

from .timestamps import Timestamped


class Expense(Timestamped, table=True):
    __tablename__ = "Expenses"

    expense_id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[int] = Field(default=None, foreign_key="Users.user_id")
    category_id: Optional[int] = Field(default=None, foreign_key="Categories.category_id")

    amount: Decimal = Field(max_digits=10, decimal_places=2)
    date: dt.date
    description: Optional[str] = Field(default=None, sa_type=Text)

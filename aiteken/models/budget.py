import datetime as dt
from decimal import Decimal
from typing import Optional

from sqlmodel import Field

from .timestamps import Timestamped


class Budget(Timestamped, table=True):
    __tablename__ = "Budgets"

    budget_id: Optional[int] = Field(default=None, primary_key=True)

    user_id: Optional[int] = Field(default=None, foreign_key="Users.user_id")
    category_id: Optional[int] = Field(default=None, foreign_key="Categories.category_id")

    amount: Decimal = Field(max_digits=10, decimal_places=2)
    start_date: dt.date
    end_date: dt.date

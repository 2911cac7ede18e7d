from .user import User
from .category import Category
from .payment_method import PaymentMethod
from .expense import Expense
from .budget import Budget
from .timestamps import track_updated_at

for _model in (User, Category, PaymentMethod, Expense, Budget):
    track_updated_at(_model.__table__)

__all__ = ["User", "Category", "PaymentMethod", "Expense", "Budget"]

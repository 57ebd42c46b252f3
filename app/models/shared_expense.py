from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.session import Base


class SharedExpense(Base):
    """Immutable once written. Corrections are new compensating expenses."""

    __tablename__ = "shared_expenses"

    id = Column(Integer, primary_key=True, index=True)
    budget_id = Column(Integer, ForeignKey("shared_budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    description = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    splits = relationship("SharedExpenseSplit", cascade="all, delete")
    category = relationship("Category")

    @property
    def split_among(self):
        return sorted(s.user_id for s in self.splits)


class SharedExpenseSplit(Base):
    __tablename__ = "shared_expense_splits"

    expense_id = Column(Integer, ForeignKey("shared_expenses.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)

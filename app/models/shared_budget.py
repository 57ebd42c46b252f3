from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Boolean, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func, true
from app.db.session import Base

shared_budget_categories = Table(
    "shared_budget_categories",
    Base.metadata,
    Column("budget_id", Integer, ForeignKey("shared_budgets.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class SharedBudget(Base):
    __tablename__ = "shared_budgets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship(
        "SharedBudgetMember",
        back_populates="budget",
        cascade="all, delete"
    )
    categories = relationship("Category", secondary=shared_budget_categories)

    @property
    def category_ids(self):
        return sorted(c.id for c in self.categories)

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.db.session import Base


class Transaction(Base):
    """General ledger row. Shared expenses write one of these so they show up in reporting."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String, nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now())
    merchant = Column(String, nullable=True)
    payment_method = Column(String, nullable=False)
    note = Column(String, nullable=True)

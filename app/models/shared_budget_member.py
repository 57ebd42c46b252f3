from sqlalchemy import Column, ForeignKey, Integer, String, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"


class SharedBudgetMember(Base):
    __tablename__ = "shared_budget_members"
    __table_args__ = (
        UniqueConstraint("budget_id", "user_id", name="uq_shared_budget_member"),
    )

    id = Column(Integer, primary_key=True, index=True)

    budget_id = Column(Integer, ForeignKey("shared_budgets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String, nullable=False, default=ROLE_MEMBER)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    budget = relationship("SharedBudget", back_populates="members")
    user = relationship("User")

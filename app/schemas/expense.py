from datetime import datetime
from typing import Dict, List, Union
from app.schemas.base import CamelModel, Money


class SharedExpenseCreate(CamelModel):
    amount: Money
    category: str
    description: str | None = None
    paid_by: Union[int, str]
    split_among: List[Union[int, str]]


class SharedExpenseCreated(CamelModel):
    expense_id: int
    transaction_id: int
    paid_by: int
    split_among: List[int]
    per_person: float


class SharedExpenseOut(CamelModel):
    id: int
    budget_id: int
    amount: float
    description: str | None = None
    category: str
    paid_by: int
    split_among: List[int]
    per_person: float
    transaction_id: int
    created_at: datetime | None = None


class BudgetSummaryOut(CamelModel):
    budget_id: int
    total_spent: float
    by_category: Dict[str, float]
    transaction_count: int
    period: str

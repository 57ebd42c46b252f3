from datetime import datetime
from typing import List, Union
from pydantic import Field
from app.schemas.base import CamelModel, Money


class SharedBudgetCreate(CamelModel):
    name: str
    total_amount: Money
    members: List[Union[int, str]] = Field(min_length=1)
    category_ids: List[int] = []


class BudgetMemberOut(CamelModel):
    user_id: int
    email: str
    role: str


class SharedBudgetOut(CamelModel):
    id: int
    name: str
    total_amount: float
    created_by: int
    is_active: bool
    category_ids: List[int]
    members: List[BudgetMemberOut]
    spent: float
    remaining: float
    created_at: datetime | None = None

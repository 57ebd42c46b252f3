from typing import List
from app.schemas.base import CamelModel


class NetBalance(CamelModel):
    user_id: int
    amount: float


class BudgetBalancesOut(CamelModel):
    budget_id: int
    settled: bool
    balances: List[NetBalance]

from pydantic import Field
from datetime import datetime
from typing import Union
from app.schemas.base import CamelModel, Money


class Transfer(CamelModel):
    from_: int = Field(alias="from")
    to: int
    amount: float


class SettleRequest(CamelModel):
    from_user_id: Union[int, str]
    to_user_id: Union[int, str]
    amount: Money


class SettlementOut(CamelModel):
    id: int
    budget_id: int
    from_user_id: int
    to_user_id: int
    amount: float
    created_by: int
    created_at: datetime | None = None

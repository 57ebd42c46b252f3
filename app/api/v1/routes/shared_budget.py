from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.core.dependencies import get_current_user
from app.models.user import User
from app.schemas.shared_budget import SharedBudgetCreate, SharedBudgetOut
from app.schemas.expense import SharedExpenseCreate, SharedExpenseCreated, SharedExpenseOut, BudgetSummaryOut
from app.schemas.settlements import SettleRequest, SettlementOut, Transfer
from app.schemas.balances import BudgetBalancesOut
from app.services.shared_budget_services import create_budget, list_budgets_for_user
from app.services.expense_services import add_expense, list_expenses, budget_summary
from app.services.settlement_service import (
    budget_balances,
    suggest_settlements,
    record_settlement,
    get_settlement_history,
)

router = APIRouter()


@router.post("", response_model=SharedBudgetOut, status_code=201)
async def create_shared_budget(
    data: SharedBudgetCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await create_budget(
        db,
        name=data.name,
        total_amount=data.total_amount,
        creator_id=user.id,
        member_identifiers=data.members,
        category_ids=data.category_ids,
    )


@router.get("", response_model=list[SharedBudgetOut])
async def my_shared_budgets(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await list_budgets_for_user(db, user.id)


@router.post("/{budget_id}/expenses", response_model=SharedExpenseCreated, status_code=201)
async def add_shared_expense(
    budget_id: int,
    data: SharedExpenseCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await add_expense(
        db,
        budget_id=budget_id,
        caller_id=user.id,
        amount=data.amount,
        paid_by=data.paid_by,
        split_among=data.split_among,
        category=data.category,
        description=data.description,
    )


@router.get("/{budget_id}/expenses", response_model=list[SharedExpenseOut])
async def all_expenses(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await list_expenses(db, budget_id, user.id)


@router.get("/{budget_id}/summary", response_model=BudgetSummaryOut)
async def summary(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await budget_summary(db, budget_id, user.id)


@router.get("/{budget_id}/balances", response_model=BudgetBalancesOut)
async def balances(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await budget_balances(db, budget_id, user.id)


@router.get("/{budget_id}/settlements", response_model=list[Transfer])
async def suggested_settlements(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await suggest_settlements(db, budget_id, user.id)


@router.get("/{budget_id}/settlements/history", response_model=list[SettlementOut])
async def settlement_history(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_settlement_history(db, budget_id, user.id)


@router.post("/{budget_id}/settle", response_model=SettlementOut)
async def settle(
    budget_id: int,
    data: SettleRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await record_settlement(
        db,
        budget_id=budget_id,
        user_id=user.id,
        from_user=data.from_user_id,
        to_user=data.to_user_id,
        amount=data.amount,
    )

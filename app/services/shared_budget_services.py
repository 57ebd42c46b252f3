from decimal import Decimal
from typing import Dict, Iterable, List

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import InvalidInput, NotFound
from app.core.utils import ZERO, to_decimal, validate_amount
from app.models.category import Category
from app.models.shared_budget import SharedBudget
from app.models.shared_budget_member import SharedBudgetMember, ROLE_OWNER, ROLE_MEMBER
from app.models.shared_expense import SharedExpense
from app.services.identity_service import resolve_user

logger = structlog.get_logger(__name__)


def _budget_options():
    return (
        selectinload(SharedBudget.members).selectinload(SharedBudgetMember.user),
        selectinload(SharedBudget.categories),
    )


def budget_to_dict(budget: SharedBudget, spent: Decimal) -> dict:
    total = to_decimal(budget.total_amount)
    return {
        "id": budget.id,
        "name": budget.name,
        "total_amount": total,
        "created_by": budget.created_by,
        "is_active": budget.is_active,
        "category_ids": budget.category_ids,
        "members": [
            {"user_id": m.user_id, "email": m.user.email, "role": m.role}
            for m in sorted(budget.members, key=lambda m: m.id)
        ],
        "spent": spent,
        "remaining": total - spent,
        "created_at": budget.created_at,
    }


async def _spent_by_budget(db: AsyncSession, budget_ids: Iterable[int]) -> Dict[int, Decimal]:
    q = (
        select(
            SharedExpense.budget_id,
            func.coalesce(func.sum(SharedExpense.amount), 0).label("spent"),
        )
        .where(SharedExpense.budget_id.in_(list(budget_ids)))
        .group_by(SharedExpense.budget_id)
    )
    res = await db.execute(q)
    return {row.budget_id: Decimal(str(row.spent)) for row in res}


async def ensure_budget_member(db: AsyncSession, budget_id: int, user_id: int) -> SharedBudget:
    """Return the budget if it exists and user_id belongs to it, else NotFound."""
    q = select(SharedBudget).options(*_budget_options()).where(SharedBudget.id == budget_id)
    budget = (await db.execute(q)).scalar_one_or_none()

    if not budget:
        raise NotFound("Shared budget does not exist")

    if not any(m.user_id == user_id for m in budget.members):
        raise NotFound("You are not a member of this budget")

    return budget


async def create_budget(
    db: AsyncSession,
    name: str,
    total_amount,
    creator_id: int,
    member_identifiers: Iterable,
    category_ids: Iterable[int] = (),
):
    if not name or not name.strip():
        raise InvalidInput("Budget name is required")

    total_amount = validate_amount(total_amount, "Total amount")

    # everything is resolved before the first write
    member_ids: List[int] = [creator_id]
    for raw in member_identifiers:
        user = await resolve_user(db, raw)
        if user.id not in member_ids:
            member_ids.append(user.id)

    wanted = set(category_ids)
    categories = []
    if wanted:
        q = select(Category).where(Category.id.in_(wanted), Category.user_id == creator_id)
        categories = (await db.scalars(q)).all()
        if len(categories) != len(wanted):
            raise InvalidInput("One or more categories not found")

    budget = SharedBudget(
        name=name.strip(),
        total_amount=total_amount,
        created_by=creator_id,
        is_active=True,
        categories=list(categories),
    )
    db.add(budget)
    await db.flush()  # generates budget.id

    db.add_all([
        SharedBudgetMember(
            budget_id=budget.id,
            user_id=uid,
            role=ROLE_OWNER if uid == creator_id else ROLE_MEMBER,
        )
        for uid in member_ids
    ])

    await db.commit()

    logger.info(
        "shared_budget_created",
        budget_id=budget.id,
        created_by=creator_id,
        member_count=len(member_ids),
    )

    q = select(SharedBudget).options(*_budget_options()).where(SharedBudget.id == budget.id)
    created = (await db.execute(q.execution_options(populate_existing=True))).scalar_one()
    return budget_to_dict(created, ZERO)


async def list_budgets_for_user(db: AsyncSession, user_id: int):
    q = (
        select(SharedBudget)
        .join(SharedBudgetMember, SharedBudgetMember.budget_id == SharedBudget.id)
        .options(*_budget_options())
        .where(SharedBudgetMember.user_id == user_id)
        .order_by(SharedBudget.created_at.desc(), SharedBudget.id.desc())
    )
    budgets = (await db.scalars(q)).all()

    spent = await _spent_by_budget(db, [b.id for b in budgets])

    return [budget_to_dict(b, spent.get(b.id, ZERO)) for b in budgets]

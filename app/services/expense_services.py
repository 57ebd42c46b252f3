from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import InvalidInput
from app.core.utils import ZERO, per_person_share, qround, to_decimal, validate_amount
from app.models.category import Category
from app.models.shared_expense import SharedExpense, SharedExpenseSplit
from app.services.identity_service import resolve_member, resolve_members
from app.services.shared_budget_services import ensure_budget_member
from app.services.transaction_service import create_linked_transaction, get_category_by_name

logger = structlog.get_logger(__name__)


async def add_expense(
    db: AsyncSession,
    budget_id: int,
    caller_id: int,
    amount,
    paid_by,
    split_among: Iterable,
    category: str,
    description: str | None = None,
):
    budget = await ensure_budget_member(db, budget_id, caller_id)

    if not budget.is_active:
        raise InvalidInput("Shared budget is not active")

    amount = validate_amount(amount)

    split_among = list(split_among)
    if not split_among:
        raise InvalidInput("splitAmong must contain at least one member")

    # -----------------------------------
    # Resolve payer and split members
    # -----------------------------------
    payer_id = await resolve_member(db, budget_id, paid_by)
    split_ids = await resolve_members(db, budget_id, split_among)

    # -----------------------------------
    # Category must exist and be allowed
    # -----------------------------------
    if not category or not category.strip():
        raise InvalidInput("Category is required")

    category_obj = await get_category_by_name(db, caller_id, category)
    if not category_obj:
        raise InvalidInput("Category not found")

    if budget.category_ids and category_obj.id not in budget.category_ids:
        raise InvalidInput("Category is not part of this budget")

    per_person = per_person_share(amount, split_ids)

    # -----------------------------------
    # Companion transaction, expense and splits in one commit
    # -----------------------------------
    transaction_id = await create_linked_transaction(
        db,
        user_id=caller_id,
        amount=amount,
        category_id=category_obj.id,
        description=description,
        paid_by=payer_id,
        split_count=len(split_ids),
    )

    expense = SharedExpense(
        budget_id=budget_id,
        amount=amount,
        paid_by=payer_id,
        category_id=category_obj.id,
        transaction_id=transaction_id,
        description=description,
        created_by=caller_id,
    )
    db.add(expense)
    await db.flush()  # generates expense.id

    db.add_all([
        SharedExpenseSplit(expense_id=expense.id, user_id=uid)
        for uid in split_ids
    ])

    await db.commit()

    logger.info(
        "shared_expense_recorded",
        budget_id=budget_id,
        expense_id=expense.id,
        transaction_id=transaction_id,
        amount=str(amount),
        paid_by=payer_id,
        split_count=len(split_ids),
    )

    return {
        "expense_id": expense.id,
        "transaction_id": transaction_id,
        "paid_by": payer_id,
        "split_among": split_ids,
        "per_person": per_person,
    }


async def list_expenses(db: AsyncSession, budget_id: int, caller_id: int):
    await ensure_budget_member(db, budget_id, caller_id)

    q = (
        select(SharedExpense)
        .options(
            selectinload(SharedExpense.splits),
            selectinload(SharedExpense.category),
        )
        .where(SharedExpense.budget_id == budget_id)
        .order_by(SharedExpense.created_at.desc(), SharedExpense.id.desc())
    )
    expenses = (await db.scalars(q)).all()

    return [
        {
            "id": e.id,
            "budget_id": e.budget_id,
            "amount": to_decimal(e.amount),
            "description": e.description,
            "category": e.category.name,
            "paid_by": e.paid_by,
            "split_among": e.split_among,
            "per_person": per_person_share(e.amount, e.split_among),
            "transaction_id": e.transaction_id,
            "created_at": e.created_at,
        }
        for e in expenses
    ]


async def budget_summary(db: AsyncSession, budget_id: int, caller_id: int):
    await ensure_budget_member(db, budget_id, caller_id)

    now = datetime.now(timezone.utc)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    q = (
        select(Category.name, SharedExpense.amount)
        .join(Category, Category.id == SharedExpense.category_id)
        .where(
            SharedExpense.budget_id == budget_id,
            SharedExpense.created_at >= start_of_month,
        )
    )
    rows = (await db.execute(q)).all()

    total = ZERO
    by_category: Dict[str, Decimal] = {}

    for name, amount in rows:
        amt = Decimal(str(amount))
        total += amt
        by_category[name] = by_category.get(name, ZERO) + amt

    return {
        "budget_id": budget_id,
        "total_spent": qround(total),
        "by_category": {name: qround(amt) for name, amt in by_category.items()},
        "transaction_count": len(rows),
        "period": f"{start_of_month.date().isoformat()} - {now.date().isoformat()}",
    }

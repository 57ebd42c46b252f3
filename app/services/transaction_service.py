from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidInput
from app.models.category import Category
from app.models.transaction import Transaction

SHARED_PAYMENT_METHOD = "shared"


async def get_category_by_name(db: AsyncSession, user_id: int, name: str):
    """
    Case-insensitive category lookup.

    Category names are only unique per exact spelling, so "Food" and "food"
    can both exist. An exact match wins; otherwise the lookup only succeeds
    when a single category matches ignoring case.
    """
    name = name.strip()
    q = select(Category).where(
        Category.user_id == user_id,
        func.lower(Category.name) == name.lower(),
    )
    matches = (await db.execute(q)).scalars().all()

    for category in matches:
        if category.name == name:
            return category

    if len(matches) > 1:
        raise InvalidInput(f"Category name is ambiguous: {name}")

    return matches[0] if matches else None


async def create_linked_transaction(
    db: AsyncSession,
    user_id: int,
    amount: Decimal,
    category_id: int,
    description: str | None,
    paid_by: int,
    split_count: int,
) -> int:
    """
    Write the general transaction that mirrors a shared expense.

    Only flushes; the caller commits it together with the expense.
    """
    transaction = Transaction(
        user_id=user_id,
        amount=amount,
        category_id=category_id,
        type="expense",
        merchant=description,
        payment_method=SHARED_PAYMENT_METHOD,
        note=f"Shared: paid by {paid_by}, split among {split_count} people",
    )

    db.add(transaction)
    await db.flush()  # generates transaction.id

    return transaction.id

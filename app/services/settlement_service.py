import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidInput
from app.core.utils import EPSILON, get_budget_balances, plan_transfers, validate_amount
from app.models.settlement import Settlement
from app.services.identity_service import resolve_member
from app.services.shared_budget_services import ensure_budget_member

logger = structlog.get_logger(__name__)


async def budget_balances(db: AsyncSession, budget_id: int, user_id: int):
    await ensure_budget_member(db, budget_id, user_id)

    balances = await get_budget_balances(db, budget_id)

    return {
        "budget_id": budget_id,
        "settled": all(abs(b) <= EPSILON for b in balances.values()),
        "balances": [
            {"user_id": uid, "amount": amount}
            for uid, amount in sorted(balances.items())
        ],
    }


async def suggest_settlements(db: AsyncSession, budget_id: int, user_id: int):
    await ensure_budget_member(db, budget_id, user_id)

    balances = await get_budget_balances(db, budget_id)
    transfers = plan_transfers(
        balances,
        sort_by_magnitude=settings.SORTED_TRANSFER_MATCHING,
    )

    return [
        {"from": t.from_member, "to": t.to_member, "amount": t.amount}
        for t in transfers
    ]


async def record_settlement(
    db: AsyncSession,
    budget_id: int,
    user_id: int,
    from_user,
    to_user,
    amount,
):
    await ensure_budget_member(db, budget_id, user_id)

    amount = validate_amount(amount)

    from_id = await resolve_member(db, budget_id, from_user)
    to_id = await resolve_member(db, budget_id, to_user)

    if from_id == to_id:
        raise InvalidInput("A member cannot settle with themselves")

    settlement = Settlement(
        budget_id=budget_id,
        from_user_id=from_id,
        to_user_id=to_id,
        amount=amount,
        created_by=user_id,
    )

    db.add(settlement)
    await db.commit()
    await db.refresh(settlement)

    logger.info(
        "settlement_recorded",
        budget_id=budget_id,
        settlement_id=settlement.id,
        from_user_id=from_id,
        to_user_id=to_id,
        amount=str(amount),
    )

    return settlement


async def get_settlement_history(db: AsyncSession, budget_id: int, user_id: int):
    await ensure_budget_member(db, budget_id, user_id)

    q = (
        select(Settlement)
        .where(Settlement.budget_id == budget_id)
        .order_by(Settlement.created_at.desc(), Settlement.id.desc())
    )

    result = await db.execute(q)
    return result.scalars().all()

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP, getcontext
from typing import Dict, Iterable, List, NamedTuple, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.core.config import settings
from app.core.exceptions import InvalidInput
from app.models.shared_budget_member import SharedBudgetMember
from app.models.shared_expense import SharedExpense
from app.models.settlement import Settlement

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")
EPSILON = Decimal(str(settings.SETTLEMENT_EPSILON))
# Numeric(12, 2) holds at most ten integer digits
MAX_AMOUNT = Decimal("1e10")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class LedgerExpense(NamedTuple):
    paid_by: int
    amount: Decimal
    split_among: Sequence[int]


class LedgerSettlement(NamedTuple):
    from_member: int
    to_member: int
    amount: Decimal


class Transfer(NamedTuple):
    from_member: int
    to_member: int
    amount: Decimal


def per_person_share(amount: Decimal, split_among: Sequence[int]) -> Decimal:
    # not rounded; balances are only brought to cents when planning transfers
    return to_decimal(amount) / len(split_among)


def compute_balances(
    member_ids: Iterable[int],
    expenses: Iterable[LedgerExpense],
    settlements: Iterable[LedgerSettlement],
) -> Dict[int, Decimal]:
    """
    Fold the full expense and settlement history into net balances.

    Positive = the member is owed money, negative = the member owes.
    The fold is commutative so the order of either log does not matter.
    """
    balances: Dict[int, Decimal] = {m: ZERO for m in member_ids}

    for exp in expenses:
        amount = to_decimal(exp.amount)
        balances[exp.paid_by] = balances.get(exp.paid_by, ZERO) + amount

        share = per_person_share(amount, exp.split_among)
        for member in exp.split_among:
            balances[member] = balances.get(member, ZERO) - share

    for s in settlements:
        amount = to_decimal(s.amount)
        # paying down a debt raises the payer, receiving lowers the payee's credit
        balances[s.from_member] = balances.get(s.from_member, ZERO) + amount
        balances[s.to_member] = balances.get(s.to_member, ZERO) - amount

    return balances


def quantize_balances(balances: Dict[int, Decimal]) -> Dict[int, Decimal]:
    """
    Round every balance to whole cents, keeping the total at its cent value.

    Balances are floored to cents, then the cents lost to flooring are handed
    back one at a time to the members with the largest remainders (ties go to
    the lower member id). No member moves by a full cent.
    """
    exact = {m: to_decimal(b) for m, b in balances.items()}
    floored = {m: b.quantize(CENTS, rounding=ROUND_FLOOR) for m, b in exact.items()}

    missing = qround(sum(exact.values(), ZERO)) - sum(floored.values(), ZERO)
    ranked = sorted(exact, key=lambda m: (floored[m] - exact[m], m))

    for member_id in ranked[:int(missing / CENTS)]:
        floored[member_id] += CENTS

    return floored


def plan_transfers(
    balances: Dict[int, Decimal],
    epsilon: Decimal = EPSILON,
    sort_by_magnitude: bool = True,
) -> List[Transfer]:
    """
    Greedy two-pointer matching of debtors against creditors.

    Matching runs on the cent balances from quantize_balances, so every
    transfer is a whole number of cents and the debtor and creditor sides
    cancel exactly. Recording the plan leaves each member less than a cent
    from zero. Nothing is planned when every balance is already within
    epsilon. With sort_by_magnitude=False the balance map's own order is
    walked, which reproduces settlement suggestions made before sorting
    was added.
    """
    if all(abs(to_decimal(b)) <= epsilon for b in balances.values()):
        return []

    debtors = []    # [member_id, cents_owed]
    creditors = []  # [member_id, cents_to_receive]

    for member_id, cents in quantize_balances(balances).items():
        if cents < ZERO:
            debtors.append([member_id, -cents])
        elif cents > ZERO:
            creditors.append([member_id, cents])

    if sort_by_magnitude:
        debtors.sort(key=lambda x: (-x[1], x[0]))
        creditors.sort(key=lambda x: (-x[1], x[0]))

    transfers: List[Transfer] = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor_id, owe = debtors[i]
        creditor_id, recv = creditors[j]

        amount = min(owe, recv)
        transfers.append(Transfer(debtor_id, creditor_id, amount))

        debtors[i][1] -= amount
        creditors[j][1] -= amount

        if debtors[i][1] == ZERO:
            i += 1
        if creditors[j][1] == ZERO:
            j += 1

    return transfers


async def get_budget_balances(db: AsyncSession, budget_id: int) -> Dict[int, Decimal]:
    members_q = (
        select(SharedBudgetMember.user_id)
        .where(SharedBudgetMember.budget_id == budget_id)
        .order_by(SharedBudgetMember.id)
    )
    member_ids = (await db.scalars(members_q)).all()

    expenses_q = (
        select(SharedExpense)
        .options(selectinload(SharedExpense.splits))
        .where(SharedExpense.budget_id == budget_id)
    )
    expenses = (await db.scalars(expenses_q)).all()

    settlements_q = select(Settlement).where(Settlement.budget_id == budget_id)
    settlements = (await db.scalars(settlements_q)).all()

    return compute_balances(
        member_ids,
        (
            LedgerExpense(e.paid_by, to_decimal(e.amount), [s.user_id for s in e.splits])
            for e in expenses
        ),
        (
            LedgerSettlement(s.from_user_id, s.to_user_id, to_decimal(s.amount))
            for s in settlements
        ),
    )


def validate_amount(value, label: str = "Amount") -> Decimal:
    try:
        amount = to_decimal(value)
    except ArithmeticError:
        raise InvalidInput(f"{label} must be a number")

    if not amount.is_finite() or amount <= ZERO:
        raise InvalidInput(f"{label} must be positive")

    if amount >= MAX_AMOUNT:
        raise InvalidInput(f"{label} is too large")

    try:
        rounded = qround(amount)
    except ArithmeticError:
        raise InvalidInput(f"{label} must be a number")

    if amount != rounded:
        raise InvalidInput(f"{label} cannot have more than 2 decimal places")

    return amount

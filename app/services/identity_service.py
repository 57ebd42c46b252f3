"""
Identity resolution for shared budgets.

Callers may name a person either by user id or by email. Both forms are
parsed into ``ById`` / ``ByEmail`` at the request boundary and resolved to
a member id (the user id) before any business logic sees them.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidInput, InvalidMember, NotFound
from app.models.shared_budget_member import SharedBudgetMember
from app.models.user import User
from app.services.user_queries import get_user_by_email, get_user_by_id


@dataclass(frozen=True)
class ById:
    user_id: int


@dataclass(frozen=True)
class ByEmail:
    email: str


MemberIdentifier = Union[ById, ByEmail]

# ids are stored in a 32-bit Integer column
MAX_USER_ID = 2**31 - 1


def _by_id(user_id: int) -> ById:
    if not 0 < user_id <= MAX_USER_ID:
        raise InvalidInput(f"Invalid member identifier: {user_id}")
    return ById(user_id)


def parse_identifier(raw: Union[int, str, ById, ByEmail]) -> MemberIdentifier:
    if isinstance(raw, (ById, ByEmail)):
        return raw

    # bool is an int subclass
    if isinstance(raw, bool):
        raise InvalidInput(f"Invalid member identifier: {raw!r}")

    if isinstance(raw, int):
        return _by_id(raw)

    if isinstance(raw, str):
        value = raw.strip()
        if re.fullmatch(r"[0-9]+", value):
            return _by_id(int(value))
        if "@" in value:
            return ByEmail(value.lower())

    raise InvalidInput(f"Invalid member identifier: {raw!r}")


async def resolve_user(db: AsyncSession, raw) -> User:
    identifier = parse_identifier(raw)

    if isinstance(identifier, ById):
        user = await get_user_by_id(db, identifier.user_id)
    else:
        user = await get_user_by_email(db, identifier.email)

    if not user or not user.is_active:
        raise NotFound(f"User not found: {raw}")

    return user


async def resolve_member(db: AsyncSession, budget_id: int, raw) -> int:
    identifier = parse_identifier(raw)

    q = (
        select(SharedBudgetMember.user_id)
        .join(User, User.id == SharedBudgetMember.user_id)
        .where(SharedBudgetMember.budget_id == budget_id)
        .where(User.is_active.is_(True))
    )

    if isinstance(identifier, ById):
        q = q.where(SharedBudgetMember.user_id == identifier.user_id)
    else:
        q = q.where(func.lower(User.email) == identifier.email)

    member_id = (await db.execute(q)).scalar_one_or_none()

    if member_id is None:
        raise InvalidMember(f"{raw} is not a member of this budget")

    return member_id


async def resolve_members(db: AsyncSession, budget_id: int, raws: Iterable) -> List[int]:
    member_ids: List[int] = []

    for raw in raws:
        member_id = await resolve_member(db, budget_id, raw)
        if member_id not in member_ids:
            member_ids.append(member_id)

    return member_ids

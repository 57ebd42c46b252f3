from app.db.session import engine
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user import User
from app.models.shared_budget import SharedBudget
from app.models.shared_expense import SharedExpense
from app.models.settlement import Settlement


async def check_db_service():
    try:
        async with engine.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return {"db": True, "message": "Database is connected"}
    except Exception as e:
        return {"db": False, "error": str(e)}


async def system_health():
    return {
        "status": "ok"
    }


async def system_metrics(db: AsyncSession):
    return {
        "users": await db.scalar(select(func.count(User.id))),
        "shared_budgets": await db.scalar(select(func.count(SharedBudget.id))),
        "expenses": await db.scalar(select(func.count(SharedExpense.id))),
        "settlements": await db.scalar(select(func.count(Settlement.id))),
    }

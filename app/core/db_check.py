import asyncio

import structlog
from sqlalchemy import text

from app.core.config import settings
from app.db.session import engine

logger = structlog.get_logger(__name__)


async def wait_for_db(retries: int = settings.DB_CONNECT_RETRIES, delay: float = 2):
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("database_connected")
            return
        except Exception as e:
            logger.warning("database_not_ready", attempt=i + 1, retries=retries, error=str(e))
            await asyncio.sleep(delay)

    raise RuntimeError("Database unreachable after retries")

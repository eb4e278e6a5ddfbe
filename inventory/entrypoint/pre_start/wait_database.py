import asyncio

from inventory.config import settings
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine
from tenacity import retry, stop, wait

max_tries = 10
wait_seconds = 6


@retry(
    stop=stop.stop_after_attempt(max_tries),
    wait=wait.wait_fixed(wait_seconds),
)
async def init(database_url: str = settings.DATABASE_URL) -> None:
    engine = create_async_engine(database_url)
    try:
        async with engine.connect() as conn:
            await conn.execute(select(1))
    finally:
        await engine.dispose()


async def main() -> None:
    logger.info(f"Wait database ({settings.DEPLOYMENT_ENVIRONMENT})...")
    await init()
    logger.info("Database is running.")


if __name__ == "__main__":
    asyncio.run(main())

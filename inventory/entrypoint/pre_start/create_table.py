import asyncio

from inventory.adapter.orm import mapper_registry
from inventory.config import settings
from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine
from tenacity import retry, stop, wait

max_tries = 10
wait_seconds = 6


@retry(
    stop=stop.stop_after_attempt(max_tries),
    wait=wait.wait_fixed(wait_seconds),
)
async def init(database_url: str = settings.DATABASE_URL) -> None:
    engine = create_async_engine(database_url, echo=settings.DEPLOYMENT_ENVIRONMENT == "local")
    async with engine.connect() as conn:
        await conn.run_sync(mapper_registry.metadata.create_all)
        await conn.commit()
    await engine.dispose()


async def main() -> None:
    logger.info("Create database tables...")
    await init()
    logger.info("Database tables created.")


if __name__ == "__main__":
    asyncio.run(main())

from inventory.adapter.orm import lots, order_lines
from inventory.domain.models import SELLABLE_STATES
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def allocations(order_id: str, session: AsyncSession):
    async with session.begin():
        results = await session.execute(
            select(
                order_lines.c.sku,
                order_lines.c.lot_reference,
                order_lines.c.quantity,
                order_lines.c.unit_price,
            )
            .where(order_lines.c.order_id == order_id)
            .order_by(order_lines.c.id)
        )
    return [dict(row._mapping) for row in results.all()]


async def available_quantity(sku: str, session: AsyncSession) -> int:
    async with session.begin():
        result = await session.execute(
            select(func.coalesce(func.sum(lots.c.quantity), 0)).where(
                lots.c.sku == sku, lots.c.state.in_(list(SELLABLE_STATES))
            )
        )
    return result.scalar_one()

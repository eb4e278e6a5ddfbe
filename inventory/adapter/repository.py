from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory import port
from inventory.domain.models import Lot, Order, Product


@dataclass
class ProductRepository(port.repository.ProductRepository):

    _session: AsyncSession

    async def add(self, product: Product) -> None:
        self._session.add(product)  # type: ignore

    async def get(self, sku: str) -> Optional[Product]:
        stmt = select(Product).filter(Product.sku == sku)  # type: ignore
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_by_lot_reference(self, lot_reference: str) -> Optional[Product]:
        stmt = (
            select(Product)
            .join(Product.lots)  # type: ignore
            .filter(Lot.reference == lot_reference)  # type: ignore
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def delete(self, product: Product) -> None:
        await self._session.delete(product)  # type: ignore


@dataclass
class OrderRepository(port.repository.OrderRepository):

    _session: AsyncSession

    async def add(self, order: Order) -> None:
        self._session.add(order)  # type: ignore

    async def get(self, order_id: str) -> Optional[Order]:
        stmt = select(Order).filter(Order.order_id == order_id)  # type: ignore
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def delete(self, order: Order) -> None:
        await self._session.delete(order)  # type: ignore

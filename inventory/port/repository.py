from typing import Optional, Protocol, TypeVar

from inventory.domain.models import Order, Product

A = TypeVar("A")
I_contra = TypeVar("I_contra", contravariant=True)


class CollectionOrientedRepository(Protocol[A, I_contra]):
    async def add(self, _aggregate: A) -> None:
        ...

    async def get(self, _id: I_contra) -> Optional[A]:
        ...

    async def delete(self, _aggregate: A) -> None:
        ...


class ProductRepository(CollectionOrientedRepository[Product, str], Protocol):
    async def get(self, sku: str) -> Optional[Product]:
        ...

    async def get_by_lot_reference(self, lot_reference: str) -> Optional[Product]:
        ...


class OrderRepository(CollectionOrientedRepository[Order, str], Protocol):
    async def get(self, order_id: str) -> Optional[Order]:
        ...

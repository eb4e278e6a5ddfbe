from decimal import Decimal

from ..models import OrderStatus
from .base import Event


class Allocated(Event):

    AGGREGATE_TYPE = "Product"

    order_id: str
    sku: str
    lot_reference: str
    qty: int
    unit_price: Decimal


class Reverted(Event):

    AGGREGATE_TYPE = "Product"

    order_id: str
    sku: str
    lot_reference: str
    qty: int


class OrderCreated(Event):

    AGGREGATE_TYPE = "Order"

    order_id: str
    total: Decimal


class OrderUpdated(Event):

    AGGREGATE_TYPE = "Order"

    order_id: str
    total: Decimal


class OrderDeleted(Event):

    AGGREGATE_TYPE = "Order"

    order_id: str


class OrderStatusChanged(Event):

    AGGREGATE_TYPE = "Order"

    order_id: str
    status: OrderStatus

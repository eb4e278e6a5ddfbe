from datetime import date
from decimal import Decimal
from typing import Optional

from ..models import (
    LineRequest,
    LotState,
    OrderStatus,
    PaymentMethod,
    PurchaseChannel,
)
from .base import Command


class CreateProduct(Command):
    sku: str
    unit_price: Decimal


class ChangeProductPrice(Command):
    sku: str
    unit_price: Decimal


class AddLot(Command):
    ref: str
    sku: str
    qty: int
    unit_cost: Decimal
    acquired_on: date
    state: LotState = LotState.NEW


class ChangeLotState(Command):
    ref: str
    state: LotState


class CreateOrder(Command):
    order_id: str
    customer_id: str
    lines: tuple[LineRequest, ...]
    payment_method: PaymentMethod
    channel: PurchaseChannel
    note: str = ""
    created_on: Optional[date] = None


class UpdateOrder(Command):
    order_id: str
    lines: tuple[LineRequest, ...]
    payment_method: Optional[PaymentMethod] = None
    channel: Optional[PurchaseChannel] = None
    note: Optional[str] = None


class DeleteOrder(Command):
    order_id: str


class ChangeOrderStatus(Command):
    order_id: str
    status: OrderStatus

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from ..exceptions import InvalidRequest, InvalidStatusTransition
from .bases import Aggregate, ValueObject, field


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROCESS = "in_process"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RETURNED = "returned"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.IN_PROCESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROCESS: frozenset({OrderStatus.DISPATCHED, OrderStatus.CANCELLED}),
    OrderStatus.DISPATCHED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# Entering one of these puts the order's stock back into its lots.
STOCK_RELEASING_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CASH_DEPOSIT = "cash_deposit"
    MERCADO_PAGO = "mercado_pago"


class PurchaseChannel(str, Enum):
    FACEBOOK_PAGE = "facebook_page"
    FACEBOOK_MARKETPLACE = "facebook_marketplace"
    LOCAL = "local"
    RETURNING_CUSTOMER = "returning_customer"
    OTHER = "other"


class LineRequest(ValueObject):
    sku: str
    quantity: int


class OrderLine(ValueObject):
    """Quantity taken from one lot for one order, at the price charged."""

    order_id: str
    sku: str
    lot_reference: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self):
        if self.quantity <= 0:
            raise InvalidRequest(
                f"Order line quantity must be positive (lot={self.lot_reference})"
            )

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class Order(Aggregate):
    order_id: str
    customer_id: str
    payment_method: PaymentMethod
    channel: PurchaseChannel
    note: str = field(default="")
    created_on: date = field(default_factory=date.today)
    status: OrderStatus = field(default=OrderStatus.PENDING)
    lines: list[OrderLine] = field(default_factory=list)
    stock_released: bool = field(default=False)
    version_number: int = field(default=0)

    def __repr__(self):
        return f"<Order {self.order_id}>"

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0"))

    @property
    def is_editable(self) -> bool:
        return not self.stock_released and self.status not in STOCK_RELEASING_STATUSES

    def replace_lines(self, lines: Iterable[OrderLine]):
        lines = list(lines)
        foreign = [line for line in lines if line.order_id != self.order_id]
        if foreign:
            raise InvalidRequest(f"Lines {foreign} do not belong to order {self.order_id}")
        self.lines = lines
        self.version_number += 1

    def update_details(
        self,
        *,
        payment_method: Optional[PaymentMethod] = None,
        channel: Optional[PurchaseChannel] = None,
        note: Optional[str] = None,
    ):
        if payment_method is not None:
            self.payment_method = payment_method
        if channel is not None:
            self.channel = channel
        if note is not None:
            self.note = note
        self.version_number += 1

    def change_status(self, status: OrderStatus):
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(self.status.value, status.value)
        self.status = status
        self.version_number += 1

    def mark_stock_released(self):
        self.stock_released = True
        self.version_number += 1

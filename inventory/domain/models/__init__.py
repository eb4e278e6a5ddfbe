from . import lot, order, product
from .lot import SELLABLE_STATES, Lot, LotState
from .order import (
    STOCK_RELEASING_STATUSES,
    LineRequest,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    PurchaseChannel,
)
from .product import Product

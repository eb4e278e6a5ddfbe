from inventory.domain.models import (
    Lot,
    LotState,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    Product,
    PurchaseChannel,
)
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import registry, relationship

from .outbox import Envelope

mapper_registry = registry()


event_outbox_table = Table(
    "events",
    mapper_registry.metadata,
    Column("id", Uuid, primary_key=True),
    Column("type", String(255), nullable=False),
    Column("payload", JSON().with_variant(JSONB, "postgresql"), nullable=False),
    Column("aggregate_id", String(255), nullable=False),
    Column("aggregate_type", String(255), nullable=False),
)


products = Table(
    "products",
    mapper_registry.metadata,
    Column("sku", String(255), primary_key=True),
    Column("unit_price", Numeric(12, 2), nullable=False),
    Column("version_number", Integer, nullable=False),
)

lots = Table(
    "lots",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reference", String(255), unique=True, nullable=False),
    Column("sku", ForeignKey("products.sku"), nullable=False),
    Column("unit_cost", Numeric(12, 2), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("acquired_on", Date, nullable=False),
    Column("state", Enum(LotState), nullable=False),
    CheckConstraint("quantity >= 0", name="lot_quantity_non_negative"),
)

orders = Table(
    "orders",
    mapper_registry.metadata,
    Column("order_id", String(255), primary_key=True),
    Column("customer_id", String(255), nullable=False),
    Column("created_on", Date, nullable=False),
    Column("payment_method", Enum(PaymentMethod), nullable=False),
    Column("channel", Enum(PurchaseChannel), nullable=False),
    Column("note", Text, nullable=False, default=""),
    Column("status", Enum(OrderStatus), nullable=False),
    Column("stock_released", Boolean, nullable=False, default=False),
    Column("version_number", Integer, nullable=False),
)

order_lines = Table(
    "order_lines",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", ForeignKey("orders.order_id"), nullable=False),
    Column("sku", ForeignKey("products.sku"), nullable=False),
    Column("lot_reference", ForeignKey("lots.reference"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(12, 2), nullable=False),
    CheckConstraint("quantity > 0", name="order_line_quantity_positive"),
)


def start_mappers():
    mapper_registry.map_imperatively(Lot, lots)
    mapper_registry.map_imperatively(
        Product,
        products,
        properties={
            "lots": relationship(Lot, lazy="selectin", order_by=lots.c.id),
        },
        version_id_col=products.c.version_number,
        version_id_generator=False,
    )
    mapper_registry.map_imperatively(OrderLine, order_lines)
    mapper_registry.map_imperatively(
        Order,
        orders,
        properties={
            "lines": relationship(
                OrderLine,
                lazy="selectin",
                order_by=order_lines.c.id,
                cascade="all, delete-orphan",
            ),
        },
        version_id_col=orders.c.version_number,
        version_id_generator=False,
    )
    mapper_registry.map_imperatively(Envelope, event_outbox_table)  # type: ignore

from __future__ import annotations

from typing import Any, Iterable

from inventory import port
from inventory.config import settings
from inventory.domain import models, reconciliation
from inventory.domain.exceptions import InvalidRequest, ProductNotFound
from inventory.domain.messages import commands, events
from inventory.service.message_bus import discard_issued_messages, issue
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_random

from . import exceptions

retry_on_conflict = retry(
    retry=retry_if_exception_type(exceptions.ConcurrencyConflict),
    stop=stop_after_attempt(settings.CONFLICT_RETRY_ATTEMPTS),
    wait=wait_random(min=0, max=0.05),
    before_sleep=lambda _: discard_issued_messages(),
    reraise=True,
)


async def _load_products(
    uow: port.unit_of_work.UnitOfWork, skus: Iterable[str]
) -> dict[str, models.Product]:
    # Ascending sku order gives every multi-product transaction the same lock order.
    products: dict[str, models.Product] = {}
    for sku in sorted(set(skus)):
        product = await uow.products.get(sku=sku)
        if product is None:
            raise ProductNotFound(f"Product not found (sku={sku})")
        products[sku] = product
    return products


async def _get_order(
    uow: port.unit_of_work.UnitOfWork, order_id: str
) -> models.Order:
    order = await uow.orders.get(order_id=order_id)
    if order is None:
        raise exceptions.OrderNotFound(f"Order not found (order_id={order_id})")
    return order


def _issue_allocated(lines: Iterable[models.OrderLine]):
    for line in lines:
        issue(
            events.Allocated(
                aggregate_id=line.sku,
                order_id=line.order_id,
                sku=line.sku,
                lot_reference=line.lot_reference,
                qty=line.quantity,
                unit_price=line.unit_price,
            )
        )


def _issue_reverted(lines: Iterable[models.OrderLine]):
    for line in lines:
        issue(
            events.Reverted(
                aggregate_id=line.sku,
                order_id=line.order_id,
                sku=line.sku,
                lot_reference=line.lot_reference,
                qty=line.quantity,
            )
        )


# Catalog and stock receipt


async def add_product(
    cmd: commands.CreateProduct,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        if await uow.products.get(sku=cmd.sku) is not None:
            raise InvalidRequest(f"Product {cmd.sku} already exists")
        await uow.products.add(
            models.Product(sku=cmd.sku, unit_price=cmd.unit_price, lots=[])
        )
        await uow.commit()


@retry_on_conflict
async def change_product_price(
    cmd: commands.ChangeProductPrice,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        [product] = (await _load_products(uow, [cmd.sku])).values()
        product.change_price(cmd.unit_price)
        await uow.commit()


@retry_on_conflict
async def add_lot(
    cmd: commands.AddLot,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        [product] = (await _load_products(uow, [cmd.sku])).values()
        product.add_lot(
            models.Lot(
                reference=cmd.ref,
                sku=cmd.sku,
                unit_cost=cmd.unit_cost,
                quantity=cmd.qty,
                acquired_on=cmd.acquired_on,
                state=cmd.state,
            )
        )
        await uow.commit()


@retry_on_conflict
async def change_lot_state(
    cmd: commands.ChangeLotState,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        product = await uow.products.get_by_lot_reference(lot_reference=cmd.ref)
        if product is None:
            raise ProductNotFound(f"Product not found (lot={cmd.ref})")
        product.change_lot_state(cmd.ref, cmd.state)
        await uow.commit()


# Orders


@retry_on_conflict
async def create_order(
    cmd: commands.CreateOrder,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    reconciliation.validate_requests(cmd.lines)
    async with uow_factory() as uow:
        if await uow.orders.get(order_id=cmd.order_id) is not None:
            raise InvalidRequest(f"Order {cmd.order_id} already exists")
        products = await _load_products(uow, (request.sku for request in cmd.lines))
        order = models.Order(
            order_id=cmd.order_id,
            customer_id=cmd.customer_id,
            payment_method=cmd.payment_method,
            channel=cmd.channel,
            note=cmd.note,
        )
        if cmd.created_on is not None:
            order.created_on = cmd.created_on
        lines = reconciliation.allocate_lines(order.order_id, cmd.lines, products)
        order.replace_lines(lines)
        await uow.orders.add(order)
        _issue_allocated(lines)
        issue(
            events.OrderCreated(
                aggregate_id=order.order_id, order_id=order.order_id, total=order.total
            )
        )
        await uow.commit()
    logger.info(f"Order {order.order_id} created with {len(lines)} lines")


@retry_on_conflict
async def update_order(
    cmd: commands.UpdateOrder,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    reconciliation.validate_requests(cmd.lines)
    async with uow_factory() as uow:
        order = await _get_order(uow, cmd.order_id)
        if not order.is_editable:
            raise InvalidRequest(
                f"Order {order.order_id} is {order.status.value} and cannot be updated"
            )
        original = list(order.lines)
        skus = [line.sku for line in original] + [request.sku for request in cmd.lines]
        products = await _load_products(uow, skus)
        lines = reconciliation.reallocate_lines(order, cmd.lines, products)
        order.update_details(
            payment_method=cmd.payment_method, channel=cmd.channel, note=cmd.note
        )
        _issue_reverted(original)
        _issue_allocated(lines)
        issue(
            events.OrderUpdated(
                aggregate_id=order.order_id, order_id=order.order_id, total=order.total
            )
        )
        await uow.commit()
    logger.info(f"Order {order.order_id} reallocated into {len(lines)} lines")


@retry_on_conflict
async def delete_order(
    cmd: commands.DeleteOrder,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        order = await _get_order(uow, cmd.order_id)
        lines = list(order.lines)
        if not order.stock_released:
            products = await _load_products(uow, (line.sku for line in lines))
            reconciliation.revert_lines(lines, products)
            _issue_reverted(lines)
        await uow.orders.delete(order)
        issue(events.OrderDeleted(aggregate_id=order.order_id, order_id=order.order_id))
        await uow.commit()
    logger.info(f"Order {cmd.order_id} deleted")


@retry_on_conflict
async def change_order_status(
    cmd: commands.ChangeOrderStatus,
    uow_factory: type[port.unit_of_work.UnitOfWork],
    **_: Any,
):
    async with uow_factory() as uow:
        order = await _get_order(uow, cmd.order_id)
        order.change_status(cmd.status)
        # The status and the released stock commit together or not at all.
        released: list[models.OrderLine] = []
        if order.status in models.STOCK_RELEASING_STATUSES and not order.stock_released:
            released = list(order.lines)
            products = await _load_products(uow, (line.sku for line in released))
            reconciliation.revert_lines(released, products)
            order.mark_stock_released()
            _issue_reverted(released)
        issue(
            events.OrderStatusChanged(
                aggregate_id=order.order_id, order_id=order.order_id, status=order.status
            )
        )
        await uow.commit()
    if released:
        logger.info(
            f"Stock of {cmd.status.value} order {cmd.order_id} released "
            f"({len(released)} lines)"
        )

"""Keeps an order's lines and its products' lot ledgers consistent.

Every function either completes or leaves the ledgers exactly as it found
them and re-raises.
"""
from collections import defaultdict
from typing import Iterable, Mapping, Sequence

from .exceptions import InvalidRequest, InventoryError, ProductNotFound
from .models import LineRequest, Order, OrderLine, Product


def validate_requests(requests: Sequence[LineRequest]):
    if not requests:
        raise InvalidRequest("An order needs at least one line")
    for request in requests:
        if not request.sku:
            raise InvalidRequest("Line request without sku")
        if request.quantity <= 0:
            raise InvalidRequest(
                f"Requested quantity for {request.sku} must be positive (got {request.quantity})"
            )


def _product(products: Mapping[str, Product], sku: str) -> Product:
    try:
        return products[sku]
    except KeyError:
        raise ProductNotFound(f"Product not found (sku={sku})")


def _by_sku(lines: Iterable[OrderLine]) -> dict[str, list[OrderLine]]:
    grouped: dict[str, list[OrderLine]] = defaultdict(list)
    for line in lines:
        grouped[line.sku].append(line)
    return grouped


def allocate_lines(
    order_id: str,
    requests: Sequence[LineRequest],
    products: Mapping[str, Product],
) -> list[OrderLine]:
    allocated: list[OrderLine] = []
    try:
        for request in requests:
            product = _product(products, request.sku)
            allocated.extend(product.allocate(order_id, request.quantity))
    except InventoryError:
        revert_lines(allocated, products)
        raise
    return allocated


def revert_lines(lines: Iterable[OrderLine], products: Mapping[str, Product]):
    grouped = _by_sku(lines)
    done: list[str] = []
    try:
        for sku, group in grouped.items():
            _product(products, sku).revert(group)
            done.append(sku)
    except InventoryError:
        for sku in reversed(done):
            products[sku].reserve(grouped[sku])
        raise


def reserve_lines(lines: Iterable[OrderLine], products: Mapping[str, Product]):
    grouped = _by_sku(lines)
    done: list[str] = []
    try:
        for sku, group in grouped.items():
            _product(products, sku).reserve(group)
            done.append(sku)
    except InventoryError:
        for sku in reversed(done):
            products[sku].revert(grouped[sku])
        raise


def reallocate_lines(
    order: Order,
    requests: Sequence[LineRequest],
    products: Mapping[str, Product],
) -> list[OrderLine]:
    """Swap an order's lines for a fresh allocation of ``requests``.

    On failure the original consumption is reserved again and the order keeps
    its original lines.
    """
    original = list(order.lines)
    revert_lines(original, products)
    try:
        lines = allocate_lines(order.order_id, requests, products)
    except InventoryError:
        reserve_lines(original, products)
        raise
    order.replace_lines(lines)
    return lines

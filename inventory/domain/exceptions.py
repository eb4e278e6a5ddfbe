class InventoryError(Exception):
    ...


class InvalidRequest(InventoryError):
    ...


class InsufficientStock(InventoryError):
    def __init__(self, sku: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {sku} (requested={requested}, available={available})"
        )
        self.sku = sku
        self.requested = requested
        self.available = available


class InvalidAdjustment(InventoryError):
    def __init__(self, lot_reference: str, quantity: int, delta: int):
        super().__init__(
            f"Adjusting lot {lot_reference} by {delta} would leave {quantity + delta} units"
        )
        self.lot_reference = lot_reference
        self.quantity = quantity
        self.delta = delta


class InvalidStatusTransition(InventoryError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Order cannot move from {current} to {requested}")
        self.current = current
        self.requested = requested


class NotFound(InventoryError):
    ...


class LotNotFound(NotFound):
    ...


class ProductNotFound(NotFound):
    ...

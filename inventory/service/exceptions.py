from inventory.domain.exceptions import InventoryError, NotFound


class OrderNotFound(NotFound):
    ...


class ConcurrencyConflict(InventoryError):
    """Another transaction changed the same aggregate first."""

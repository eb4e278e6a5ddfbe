import sys
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loguru import logger

from inventory import port
from inventory.adapter.orm import start_mappers
from inventory.config import settings
from inventory.domain.messages import commands
from inventory.domain.messages.base import Message
from inventory.service import handlers
from inventory.service.message_bus import Handler, MessageBus


M = TypeVar("M", bound=Message)


async def pre_hook(msg: M, handler: Handler[M]):
    ...


async def post_hook(msg: M, handler: Handler[M]):
    logger.debug(f"[Handled {handler.__name__} {type(msg).__name__}] {msg}")


async def exception_hook(msg: M, handler: Handler[M], exc: Exception):
    logger.exception(
        f"[Exception {type(exc)} {handler.__name__} {type(msg).__name__}] {exc} "
    )


def configure_logging(level: str = settings.LOG_LEVEL):
    logger.remove()
    logger.add(sys.stderr, level=level)


def bootstrap(
    *,
    start_orm_mapping: bool,
    uow_class: type[port.unit_of_work.UnitOfWork],
    configure_logger: bool = False,
    pre_hook: Optional[Callable[[Message, Handler[Any]], Awaitable[None]]] = pre_hook,
    post_hook: Optional[Callable[[Message, Handler[Any]], Awaitable[None]]] = post_hook,
    exception_hook: Optional[
        Callable[[Message, Handler[Any], Exception], Awaitable[None]]
    ] = exception_hook,
) -> MessageBus:

    if configure_logger:
        configure_logging()

    if start_orm_mapping:
        start_mappers()

    message_bus = MessageBus(
        deps={"uow_factory": uow_class},
        pre_hook=pre_hook,
        post_hook=post_hook,
        exception_hook=exception_hook,
    )

    # Commands
    message_bus.register_handler(commands.CreateProduct, handlers.add_product)
    message_bus.register_handler(
        commands.ChangeProductPrice, handlers.change_product_price
    )
    message_bus.register_handler(commands.AddLot, handlers.add_lot)
    message_bus.register_handler(commands.ChangeLotState, handlers.change_lot_state)
    message_bus.register_handler(commands.CreateOrder, handlers.create_order)
    message_bus.register_handler(commands.UpdateOrder, handlers.update_order)
    message_bus.register_handler(commands.DeleteOrder, handlers.delete_order)
    message_bus.register_handler(
        commands.ChangeOrderStatus, handlers.change_order_status
    )

    # Events are published through the outbox; none is handled in process.

    return message_bus

from dataclasses import dataclass, field
from types import TracebackType
from typing import Callable, ClassVar, Optional

from inventory import port
from inventory.config import settings
from inventory.domain.messages.events import Event
from inventory.service.exceptions import ConcurrencyConflict
from inventory.service.message_bus import get_issued_messages
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from typing_extensions import Self

from .outbox import Outbox
from .repository import OrderRepository, ProductRepository

engine = create_async_engine(
    settings.DATABASE_URL, isolation_level=settings.DATABASE_ISOLATION_LEVEL
)

SERIALIZATION_FAILURE = "40001"


def is_serialization_failure(exc: DBAPIError) -> bool:
    code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    return code == SERIALIZATION_FAILURE or "could not serialize access" in str(exc)


@dataclass
class UnitOfWork(port.unit_of_work.UnitOfWork):

    SESSION_FACTORY: ClassVar[Callable[[], AsyncSession]] = sessionmaker(  # type: ignore
        bind=engine, class_=AsyncSession, expire_on_commit=False  # type: ignore
    )

    products: ProductRepository = field(init=False)
    orders: OrderRepository = field(init=False)
    _session: AsyncSession = field(init=False)
    _outbox: Outbox = field(init=False)

    async def __aenter__(self) -> Self:
        self._session = await self.SESSION_FACTORY().__aenter__()
        self.products = ProductRepository(self._session)
        self.orders = OrderRepository(self._session)
        self._outbox = Outbox(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self._session.__aexit__(exc_type, exc_value, traceback)

    async def commit(self) -> None:
        issued_events = [
            message for message in get_issued_messages() if isinstance(message, Event)
        ]
        try:
            for event in issued_events:
                await self._outbox.put(event)
            await self._session.commit()
        except StaleDataError as e:
            raise ConcurrencyConflict(str(e)) from e
        except DBAPIError as e:
            if is_serialization_failure(e):
                raise ConcurrencyConflict(str(e)) from e
            raise
        for event in issued_events:
            await self._outbox.delete(event)
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

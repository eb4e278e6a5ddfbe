from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Iterable
from uuid import UUID

from cattrs.preconf.json import make_converter  # type: ignore
from inventory import port
from inventory.domain.messages import events
from inventory.domain.messages.events import Event
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

converter = make_converter()

converter.register_unstructure_hook(UUID, lambda uuid: uuid.hex)  # type: ignore
converter.register_structure_hook(UUID, lambda hex, _: UUID(hex))
converter.register_unstructure_hook(Decimal, str)
converter.register_structure_hook(Decimal, lambda value, _: Decimal(value))


@dataclass
class Envelope:
    id: UUID
    aggregate_type: str
    aggregate_id: str
    type: str
    payload: dict[str, Any]


@dataclass
class Outbox(port.outbox.Outbox[Event]):

    EVENT_MAP: ClassVar[dict[str, type[Event]]] = {
        event_type.__name__: event_type
        for event_type in (
            events.Allocated,
            events.Reverted,
            events.OrderCreated,
            events.OrderUpdated,
            events.OrderDeleted,
            events.OrderStatusChanged,
        )
    }

    _session: AsyncSession

    async def all(self) -> Iterable[Event]:
        envelope_scalars = await self._session.scalars(select(Envelope))
        envelopes: list[Envelope] = envelope_scalars.all()  # type: ignore
        return [
            converter.structure(envelope.payload, self.EVENT_MAP[envelope.type])
            for envelope in envelopes
        ]

    async def put(self, event: Event) -> None:
        assert type(event).__name__ in self.EVENT_MAP
        envelope = Envelope(
            id=event.uid,
            aggregate_type=event.AGGREGATE_TYPE,
            aggregate_id=event.aggregate_id,
            type=type(event).__name__,
            payload=converter.unstructure(event),
        )
        self._session.add(envelope)

    async def delete(self, event: Event) -> None:
        envelope = await self._session.get(Envelope, event.uid)
        if envelope is not None:
            await self._session.delete(envelope)

"""Domain events emitted by the order engine.

Events are collected while a transition runs and handed to an
EventPublisher only after the transaction commits. Publishing is fire and
forget: it must never block or fail the transaction that produced it.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Protocol


@dataclass(frozen=True)
class DomainEvent:
    event_type: ClassVar[str] = "DomainEvent"

    order_id: int

    def to_payload(self) -> dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass(frozen=True)
class OrderAssigned(DomainEvent):
    event_type: ClassVar[str] = "OrderAssigned"

    client_id: str = ""
    writer_id: str = ""
    manager_id: str = ""
    writer_amount: int = 0
    manager_assign_fee: int = 0


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    event_type: ClassVar[str] = "OrderDelivered"

    client_id: str = ""
    writer_id: str = ""
    manager_id: str = ""
    manager_submit_fee: int = 0


@dataclass(frozen=True)
class PaymentConfirmed(DomainEvent):
    event_type: ClassVar[str] = "PaymentConfirmed"

    client_id: str = ""
    writer_id: str = ""
    manager_id: str = ""
    total_amount: int = 0
    writer_amount: int = 0
    manager_amount: int = 0
    platform_amount: int = 0
    external_reference: str | None = None


@dataclass(frozen=True)
class RevisionRequested(DomainEvent):
    event_type: ClassVar[str] = "RevisionRequested"

    client_id: str = ""
    writer_id: str | None = None
    manager_id: str | None = None
    clawback_amount: int = 0
    notes: str | None = None


class EventPublisherProtocol(Protocol):
    async def publish(self, event: DomainEvent) -> None: ...

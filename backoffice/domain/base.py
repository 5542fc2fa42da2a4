"""Base classes for the domain layer.

Entities carry identity, value objects carry data, and aggregate roots
carry an optimistic concurrency token that stores use for
compare-and-swap writes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID, uuid4


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable object compared by its attributes."""

    pass


T = TypeVar("T", bound=UUID | str)


@dataclass
class Entity(ABC, Generic[T]):
    """Object with an identity that survives state changes.

    Attributes:
        id: Unique identifier for this entity.
    """

    id: T

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(kw_only=True)
class AggregateRoot(Entity[T], Generic[T]):
    """Consistency boundary for a cluster of domain objects.

    Every mutation bumps ``version``. A store persists the aggregate only
    if the stored version still equals the version that was read, so two
    writers that started from the same snapshot cannot both win.

    Attributes:
        version: Optimistic concurrency token.
        created_at: When the aggregate was created.
        updated_at: When the aggregate was last modified.
    """

    version: int = field(default=1, compare=False)
    created_at: datetime = field(default_factory=utcnow, compare=False)
    updated_at: datetime = field(default_factory=utcnow, compare=False)
    _events: list["DomainEvent"] = field(
        default_factory=list,
        init=False,
        repr=False,
        compare=False,
    )

    def _record_event(self, event: "DomainEvent") -> None:
        """Queue an event to be published once the aggregate is stored."""
        self._events.append(event)

    def collect_events(self) -> list["DomainEvent"]:
        """Return and clear the queued events.

        Returns:
            Events recorded since the last collection.
        """
        events = self._events.copy()
        self._events.clear()
        return events

    def _touch(self, now: datetime | None = None) -> None:
        """Stamp the modification time and advance the version."""
        self.updated_at = now or utcnow()
        self.version += 1


@dataclass(frozen=True)
class DomainEvent(ABC):
    """Something that happened to an aggregate.

    Attributes:
        event_id: Unique identifier for this event instance.
        occurred_at: When the event occurred.
        aggregate_id: ID of the aggregate that emitted it.
        aggregate_type: Type name of that aggregate.
    """

    event_type: ClassVar[str]

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: str = field(default="")
    aggregate_type: str = field(default="")

    def to_dict(self) -> dict[str, Any]:
        """Serialize the event for logging or publishing."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "payload": self._payload(),
        }

    @abstractmethod
    def _payload(self) -> dict[str, Any]:
        """Event-specific data."""
        pass

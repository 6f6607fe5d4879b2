"""Port interface for ticket persistence."""

from abc import ABC, abstractmethod

from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.value_objects.enums import TicketStatus


class TicketRepository(ABC):
    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        """Insert a new ticket and return it with ``id`` populated."""
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        ...

    @abstractmethod
    async def get_for_update(self, ticket_id: int) -> Ticket | None:
        """Load a ticket holding a row lock until the unit of work ends.

        Must use row-level locking (SELECT ... FOR UPDATE) so concurrent
        transitions on the same ticket serialize.
        """
        ...

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def list_by_property(
        self,
        property_id: str,
        status: TicketStatus | None = None,
        assigned_to: str | None = None,
    ) -> list[Ticket]:
        ...

    @abstractmethod
    async def count_active_by_resolver(self, property_id: str) -> dict[str, int]:
        """Map assignee id → tickets currently ``assigned`` or ``in_progress``."""
        ...

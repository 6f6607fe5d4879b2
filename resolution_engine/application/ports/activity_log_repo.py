"""Port interface for the append-only ticket activity log."""

from abc import ABC, abstractmethod

from resolution_engine.domain.entities.activity import ActivityLogEntry


class ActivityLogRepository(ABC):
    @abstractmethod
    async def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        ...

    @abstractmethod
    async def list_for_ticket(self, ticket_id: int) -> list[ActivityLogEntry]:
        """Entries of one ticket, oldest first."""
        ...

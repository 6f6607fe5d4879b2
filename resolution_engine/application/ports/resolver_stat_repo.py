"""Port interface for resolver availability rows."""

from abc import ABC, abstractmethod
from datetime import datetime

from resolution_engine.domain.entities.resolver_stat import ResolverStat


class ResolverStatRepository(ABC):
    @abstractmethod
    async def get(
        self, user_id: str, property_id: str, skill_group_id: int | None
    ) -> ResolverStat | None:
        ...

    @abstractmethod
    async def upsert(self, stat: ResolverStat) -> ResolverStat:
        """Insert or update the row keyed by (user, property, skill group)."""
        ...

    @abstractmethod
    async def list_available(
        self, property_id: str, skill_group_id: int | None = None
    ) -> list[ResolverStat]:
        """Rows with ``is_available`` set. The shift flag ``is_checked_in`` is attendance only."""
        ...

    @abstractmethod
    async def list_for_user(self, user_id: str, property_id: str) -> list[ResolverStat]:
        ...

    @abstractmethod
    async def set_availability(self, user_id: str, property_id: str, available: bool) -> int:
        """Flip ``is_available``/``is_checked_in`` on every row of the pair.

        Returns the number of rows touched.
        """
        ...

    @abstractmethod
    async def touch_assigned(
        self, user_id: str, property_id: str, skill_group_id: int | None, at: datetime
    ) -> None:
        """Record the time a resolver last received a ticket."""
        ...

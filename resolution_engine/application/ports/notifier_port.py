"""Port interface for outbound ticket notifications."""

from abc import ABC, abstractmethod

from resolution_engine.domain.value_objects.enums import NotificationEvent


class NotifierPort(ABC):
    @abstractmethod
    async def notify(self, event: NotificationEvent, ticket_id: int) -> None:
        """Deliver one event. Raises DependencyFailure when the transport fails."""
        ...

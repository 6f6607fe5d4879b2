"""Notifier adapters — implement NotifierPort."""

from __future__ import annotations

import logging

import httpx

from resolution_engine.application.ports.notifier_port import NotifierPort
from resolution_engine.config import settings
from resolution_engine.domain.errors import DependencyFailure
from resolution_engine.domain.policies.sla import utc_now
from resolution_engine.domain.value_objects.enums import NotificationEvent

logger = logging.getLogger(__name__)


class HttpNotifier(NotifierPort):
    """POSTs ``{"event", "ticket_id", "sent_at"}`` to a webhook endpoint."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url or settings.notifier_url
        self._timeout = timeout if timeout is not None else settings.notifier_timeout_seconds
        self._transport = transport

    async def notify(self, event: NotificationEvent, ticket_id: int) -> None:
        payload = {
            "event": event.value,
            "ticket_id": ticket_id,
            "sent_at": utc_now().isoformat(),
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise DependencyFailure(f"Notifier rejected {event.value} for ticket {ticket_id}: {e}") from e

        logger.info("Notified %s for ticket %s", event.value, ticket_id)


class LoggingNotifier(NotifierPort):
    """Used when no webhook is configured: events only reach the log."""

    async def notify(self, event: NotificationEvent, ticket_id: int) -> None:
        logger.info("Notification %s for ticket %s (no notifier configured)", event.value, ticket_id)


def build_notifier() -> NotifierPort:
    if settings.notifier_url:
        logger.info("Using webhook notifier at %s", settings.notifier_url)
        return HttpNotifier()
    return LoggingNotifier()

"""EventDispatcher — drains notifications produced by lifecycle transitions.

Runs after the unit of work has committed. Delivery is fire-and-forget: a
failing notifier is logged and never undoes or fails the transition.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from resolution_engine.application.ports.notifier_port import NotifierPort
from resolution_engine.domain.errors import DependencyFailure
from resolution_engine.domain.policies.lifecycle import PendingNotification

logger = logging.getLogger(__name__)


class EventDispatcher:
    def __init__(self, notifier: NotifierPort):
        self._notifier = notifier

    async def dispatch(self, notifications: Iterable[PendingNotification]) -> int:
        """Deliver each notification in order; returns how many succeeded."""
        delivered = 0
        for n in notifications:
            try:
                await self._notifier.notify(n.event, n.ticket_id)
            except DependencyFailure as e:
                logger.warning(
                    "Notification %s for ticket %s not delivered: %s",
                    n.event.value, n.ticket_id, e.reason,
                )
                continue
            except Exception:
                logger.exception(
                    "Notifier crashed on %s for ticket %s", n.event.value, n.ticket_id
                )
                continue
            delivered += 1
        return delivered

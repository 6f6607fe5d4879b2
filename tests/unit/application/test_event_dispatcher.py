"""Tests for EventDispatcher."""

import logging

import pytest

from resolution_engine.application.ports.notifier_port import NotifierPort
from resolution_engine.application.services.event_dispatcher import EventDispatcher
from resolution_engine.domain.policies.lifecycle import PendingNotification
from resolution_engine.domain.value_objects.enums import NotificationEvent
from tests.fakes import RecordingNotifier


class CrashingNotifier(NotifierPort):
    async def notify(self, event, ticket_id):
        raise KeyError("template")


@pytest.mark.asyncio
async def test_delivers_in_order():
    notifier = RecordingNotifier()
    delivered = await EventDispatcher(notifier).dispatch([
        PendingNotification(NotificationEvent.ASSIGNED, 1),
        PendingNotification(NotificationEvent.COMPLETED, 2),
    ])
    assert delivered == 2
    assert notifier.sent == [("assigned", 1), ("completed", 2)]


@pytest.mark.asyncio
async def test_failed_delivery_is_logged_and_skipped(caplog):
    notifier = RecordingNotifier(fail_on={1})
    with caplog.at_level(logging.WARNING):
        delivered = await EventDispatcher(notifier).dispatch([
            PendingNotification(NotificationEvent.WAITLISTED, 1),
            PendingNotification(NotificationEvent.ASSIGNED, 2),
        ])
    assert delivered == 1
    assert notifier.sent == [("assigned", 2)]
    assert "not delivered" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_notifier_error_does_not_raise(caplog):
    with caplog.at_level(logging.ERROR):
        delivered = await EventDispatcher(CrashingNotifier()).dispatch(
            [PendingNotification(NotificationEvent.ASSIGNED, 3)]
        )
    assert delivered == 0
    assert "Notifier crashed" in caplog.text


@pytest.mark.asyncio
async def test_nothing_to_dispatch():
    assert await EventDispatcher(RecordingNotifier()).dispatch([]) == 0

"""Tests for confirmation messages, the notification queue, and the worker."""

import asyncio
from datetime import time

import pytest

from consult_scheduler.schemas.booking_schema import BookingRequest, Reservation
from consult_scheduler.scheduling.notifications import (
    NotificationMessage,
    NotificationQueue,
    NotificationWorker,
    build_confirmation,
)
from consult_scheduler.scheduling.slot_windows import BusinessHours
from tests.conftest import at, make_booking_payload


class FlakyClient:
    """Fails the first ``failures`` deliveries, then succeeds."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self.sent: list[tuple[str, str]] = []

    async def notify(self, recipient: str, content: str) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("SMS gateway unreachable")
        self.sent.append((recipient, content))


def make_message(reservation_id: str = "JOB-ABC123") -> NotificationMessage:
    return NotificationMessage(recipient="+13125550142", content="hello", reservation_id=reservation_id)


class TestBuildConfirmation:
    def test_message_uses_local_time_and_e164(self):
        request = BookingRequest(**make_booking_payload(start_time=at(15).isoformat(),
                                                        end_time=at(15, 30).isoformat()))
        reservation = Reservation(
            id="JOB-ABC123", technician_id="T1", job_type_id=100,
            start_time=at(15), end_time=at(15, 30),
        )
        chicago = BusinessHours("America/Chicago", time(8), time(17)).tzinfo

        message = build_confirmation(request, reservation, "Reliable Plumbing Co.", chicago)

        assert message.recipient == "+13125550142"
        assert message.reservation_id == "JOB-ABC123"
        assert "Monday, March 4 at 09:00 AM" in message.content
        assert "Reliable Plumbing Co." in message.content
        assert "JOB-ABC123" in message.content


class TestNotificationQueue:
    def test_publish_when_full_returns_false(self):
        queue = NotificationQueue(maxsize=1)
        assert queue.publish(make_message("JOB-1"))
        assert not queue.publish(make_message("JOB-2"))
        assert queue.qsize() == 1


class TestNotificationWorker:
    @pytest.mark.asyncio
    async def test_drain_delivers_queued_messages(self, notification_queue, worker, messaging):
        notification_queue.publish(make_message("JOB-1"))
        notification_queue.publish(make_message("JOB-2"))

        assert await worker.drain() == 2
        assert worker.delivered == 2
        assert len(messaging.sent) == 2
        assert notification_queue.empty()

    @pytest.mark.asyncio
    async def test_retries_until_delivered(self, notification_queue):
        client = FlakyClient(failures=2)
        worker = NotificationWorker(notification_queue, client, max_attempts=3, retry_delay_sec=0)
        message = make_message()

        assert await worker.process(message)
        assert message.attempts == 3
        assert client.sent == [("+13125550142", "hello")]
        assert worker.dead_letters == []

    @pytest.mark.asyncio
    async def test_dead_letters_after_max_attempts(self, notification_queue):
        client = FlakyClient(failures=10)
        worker = NotificationWorker(notification_queue, client, max_attempts=3, retry_delay_sec=0)
        message = make_message()

        assert not await worker.process(message)
        assert client.calls == 3
        assert worker.dead_letters == [message]
        assert "SMS gateway unreachable" in message.last_error

    @pytest.mark.asyncio
    async def test_requeue_dead_letters(self, notification_queue):
        client = FlakyClient(failures=3)
        worker = NotificationWorker(notification_queue, client, max_attempts=3, retry_delay_sec=0)
        notification_queue.publish(make_message())
        await worker.drain()
        assert len(worker.dead_letters) == 1

        assert worker.requeue_dead_letters() == 1
        await worker.drain()

        assert worker.dead_letters == []
        assert worker.delivered == 1

    @pytest.mark.asyncio
    async def test_background_task_consumes_queue(self, notification_queue, worker, messaging):
        worker.start()
        notification_queue.publish(make_message())
        await asyncio.wait_for(notification_queue.join(), timeout=1)
        await worker.stop()

        assert worker.delivered == 1
        assert messaging.sent[0][0] == "+13125550142"

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, worker):
        await worker.stop()

"""
Booking confirmation delivery through an explicit queue and worker.

The orchestrator publishes a message and returns immediately. The worker
delivers it through the messaging client with bounded retries; messages that
still fail are kept on a dead-letter list where they can be inspected and
re-published. A failed notification never affects the booking itself.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from consult_scheduler.schemas.booking_schema import BookingRequest, Reservation
from consult_scheduler.tools.messaging import MessagingClient
from consult_scheduler.utils import format_phone_e164

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    """A confirmation waiting to be delivered."""

    recipient: str
    content: str
    reservation_id: str
    attempts: int = 0
    last_error: Optional[str] = None


def build_confirmation(
    request: BookingRequest, reservation: Reservation, business_name: str, local_tz: tzinfo
) -> NotificationMessage:
    """Compose the SMS sent to the customer once a job is reserved."""
    starts = reservation.start_time.astimezone(local_tz)
    content = (
        f"Hi {request.name}, your virtual consultation with {business_name} is confirmed "
        f"for {starts:%A, %B} {starts.day} at {starts:%I:%M %p}. "
        f"Reference: {reservation.id}."
    )
    return NotificationMessage(
        recipient=format_phone_e164(request.phone),
        content=content,
        reservation_id=reservation.id,
    )


class NotificationQueue:
    """Bounded in-process channel between the orchestrator and the worker."""

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[NotificationMessage] = asyncio.Queue(maxsize=maxsize)

    def publish(self, message: NotificationMessage) -> bool:
        """Enqueue without waiting. Returns False when the queue is full."""
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.error(
                "Notification queue full; confirmation for %s not queued", message.reservation_id
            )
            return False
        logger.debug("Queued confirmation for %s", message.reservation_id)
        return True

    async def get(self) -> NotificationMessage:
        return await self._queue.get()

    def get_nowait(self) -> NotificationMessage:
        return self._queue.get_nowait()

    def task_done(self) -> None:
        self._queue.task_done()

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        """Wait until every queued message has been processed."""
        await self._queue.join()


class NotificationWorker:
    """Consumes the queue and delivers messages with retries."""

    def __init__(
        self,
        queue: NotificationQueue,
        client: MessagingClient,
        max_attempts: int = 3,
        retry_delay_sec: float = 2.0,
    ) -> None:
        self._queue = queue
        self._client = client
        self._max_attempts = max_attempts
        self._retry_delay_sec = retry_delay_sec
        self._task: Optional[asyncio.Task] = None
        self.delivered = 0
        self.dead_letters: list[NotificationMessage] = []

    async def process(self, message: NotificationMessage) -> bool:
        """Deliver one message, retrying with linear backoff. Returns success."""
        while message.attempts < self._max_attempts:
            message.attempts += 1
            try:
                await self._client.notify(message.recipient, message.content)
            except Exception as exc:
                message.last_error = repr(exc)
                logger.warning(
                    "Notification for %s failed (attempt %d/%d): %s",
                    message.reservation_id, message.attempts, self._max_attempts, exc,
                )
                if message.attempts < self._max_attempts:
                    await asyncio.sleep(self._retry_delay_sec * message.attempts)
                continue
            self.delivered += 1
            logger.info("Confirmation for %s delivered", message.reservation_id)
            return True

        self.dead_letters.append(message)
        logger.error(
            "Notification for %s dead-lettered after %d attempts: %s",
            message.reservation_id, message.attempts, message.last_error,
        )
        return False

    async def drain(self) -> int:
        """Process everything currently queued. Returns the number processed."""
        processed = 0
        while not self._queue.empty():
            message = self._queue.get_nowait()
            try:
                await self.process(message)
            finally:
                self._queue.task_done()
            processed += 1
        return processed

    async def run(self) -> None:
        """Consume forever; cancel the task to stop."""
        while True:
            message = await self._queue.get()
            try:
                await self.process(message)
            finally:
                self._queue.task_done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def requeue_dead_letters(self) -> int:
        """Move dead-lettered messages back onto the queue for another round."""
        requeued = 0
        while self.dead_letters:
            message = self.dead_letters.pop(0)
            message.attempts = 0
            if not self._queue.publish(message):
                self.dead_letters.insert(0, message)
                break
            requeued += 1
        return requeued

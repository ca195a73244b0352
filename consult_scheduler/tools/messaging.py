"""
Mock messaging platform for customer confirmations.

In production, this would send an SMS through Podium to the customer's
E.164 phone number.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class MessagingClient(Protocol):
    async def notify(self, recipient: str, content: str) -> None:
        ...


class InMemoryMessagingClient:
    """Records every delivered message in an outbox."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def notify(self, recipient: str, content: str) -> None:
        self.sent.append((recipient, content))
        logger.info("Message delivered to %s", recipient)

    def reset(self) -> None:
        self.sent.clear()

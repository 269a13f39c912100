from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class NotifierResponse:
    """Transport-level outcome of one outbound message."""

    ok: bool
    description: str | None = None


class AbstractNotifier(ABC):
    """Interface for one-shot outbound message transports."""

    @property
    @abstractmethod
    def destination(self) -> str | None:
        """Where messages are delivered (e.g., a chat id), if configured."""
        ...

    @abstractmethod
    async def send(self, text: str) -> NotifierResponse:
        """Send a fully rendered message once.

        Args:
            text: Message body.

        Returns:
            NotifierResponse with ok=False and a description when the message
            could not be delivered. Implementations may still raise on
            unexpected errors; callers must treat delivery as best-effort.
        """
        ...

"""
In-memory messenger adapter.

Collects user-facing notices for the acting request and logs them.
The HTTP layer drains the queue into the save response.

Key behaviors:
- Severity is `status` or `error`; anything else is rejected
- Messages are kept in emission order until drained
- Every message is logged (errors at WARNING, status at INFO)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

SEVERITIES = ("status", "error")


@dataclass(frozen=True)
class EmittedMessage:
    """Record of an emitted message."""

    message: str
    severity: str
    emitted_at: datetime


@dataclass
class InMemoryMessenger:
    """
    Messenger that queues messages in memory.

    Implements MessengerPort.
    """

    messages: list[EmittedMessage] = field(default_factory=list)

    # Configuration
    log_messages: bool = True

    def emit(self, message: str, severity: str = "status") -> None:
        """Queue a message for display to the acting user."""
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown message severity: {severity}")

        self.messages.append(
            EmittedMessage(
                message=message,
                severity=severity,
                emitted_at=datetime.now(UTC),
            )
        )

        if self.log_messages:
            level = logging.WARNING if severity == "error" else logging.INFO
            logger.log(level, "MESSAGE (%s): %s", severity, message)

    def drain(self) -> list[EmittedMessage]:
        """Return all queued messages and clear the queue."""
        drained = list(self.messages)
        self.messages.clear()
        return drained

    # --- Test Helper Methods ---

    def get_last_message(self) -> EmittedMessage | None:
        """Get the most recently emitted message."""
        return self.messages[-1] if self.messages else None

    def get_messages_with_severity(self, severity: str) -> list[EmittedMessage]:
        """Get all queued messages of one severity."""
        return [m for m in self.messages if m.severity == severity]

    @property
    def message_count(self) -> int:
        """Get the number of queued messages."""
        return len(self.messages)

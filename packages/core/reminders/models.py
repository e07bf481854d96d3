from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ReminderMessage:
    user_id: int
    subject: str
    body: str


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    error: Optional[str] = None


@runtime_checkable
class Notifier(Protocol):
    def deliver(self, user_id: int, subject: str, body: str) -> DeliveryResult:
        """Send a message to the user. Failures are reported, never raised."""

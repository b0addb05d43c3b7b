"""Connected client bookkeeping."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

MAX_CONNECTION_TIMEOUT = 5
"""Seconds of inactivity after which a user no longer counts as connected."""


@dataclass
class User:
    """A client seen by the server, with the time of its last activity."""

    last_time: float = field(default_factory=time.monotonic)
    is_closed: bool = False

    def can_close(self) -> bool:
        """Return True if the user closed the connection or has been idle too long."""
        return self.is_closed or time.monotonic() - self.last_time > MAX_CONNECTION_TIMEOUT

    def update_time(self) -> None:
        """Mark the user as active now."""
        self.is_closed = False
        self.last_time = time.monotonic()
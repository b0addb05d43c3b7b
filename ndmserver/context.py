"""Request and response objects passed through the middleware chain."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ndmserver.user import User


class RequestContext:
    """An incoming message together with a view of the server's users."""

    def __init__(self, data: bytes, users: Mapping[int, User] | None = None) -> None:
        self.data = bytes(data)
        self.users: Mapping[int, User] = users if users is not None else {}

    def connected_user_count(self) -> int:
        """Number of users that are still considered connected."""
        return sum(1 for user in self.users.values() if not user.can_close())

    def all_user_count(self) -> int:
        """Number of users the server has ever seen."""
        return len(self.users)

    def message(self) -> str:
        """The message as text.

        A NUL-terminated buffer is cut at its first NUL byte; any other buffer
        is taken whole.
        """
        raw = self.data
        if raw.endswith(b"\0"):
            raw = raw.split(b"\0", 1)[0]
        return raw.decode("utf-8", errors="surrogateescape")


@dataclass
class ResponseContext:
    """The server's answer, and whether the server should stop afterwards."""

    response: str = ""
    _is_shutdown: bool = field(default=False, repr=False)

    def shutdown(self) -> None:
        """Ask the server to stop after this response is sent."""
        self._is_shutdown = True

    def can_shutdown(self) -> bool:
        """Return True if a shutdown was requested."""
        return self._is_shutdown
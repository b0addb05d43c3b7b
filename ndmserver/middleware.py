"""Request handlers that can be chained together."""

from __future__ import annotations

from collections.abc import Callable

from ndmserver.context import RequestContext, ResponseContext

Command = Callable[[RequestContext, ResponseContext], None]

_C_WHITESPACE = " \t\n\v\f\r"


class MiddlewareBase:
    """A handler in a chain; does nothing unless overridden."""

    def __init__(self, successor: MiddlewareBase | None = None) -> None:
        self.successor = successor

    def handle_request(self, request: RequestContext, response: ResponseContext) -> None:
        """Handle a request, filling in the response."""


class CommandMiddleware(MiddlewareBase):
    """Runs commands: messages starting with '/'.

    Unknown commands are reported in the response; anything that is not a
    command is handed to the successor, if there is one.
    """

    def __init__(self, successor: MiddlewareBase | None = None) -> None:
        super().__init__(successor)
        self.commands: dict[str, Command] = {}

    def handle_request(self, request: RequestContext, response: ResponseContext) -> None:
        message = request.message()
        if message.startswith("/"):
            name = message[1:].rstrip(_C_WHITESPACE)
            command = self.commands.get(name)
            if command is None:
                response.response = "unknown command"
            else:
                command(request, response)
        elif self.successor is not None:
            self.successor.handle_request(request, response)

    def add_command(self, name: str, command: Command) -> None:
        """Register a command under a name, replacing any previous one."""
        self.commands[name] = command

    def remove_command(self, name: str) -> None:
        """Forget a command; unknown names are ignored."""
        self.commands.pop(name, None)


class MirrorMiddleware(MiddlewareBase):
    """Answers every message with the message itself."""

    def handle_request(self, request: RequestContext, response: ResponseContext) -> None:
        response.response = request.message()
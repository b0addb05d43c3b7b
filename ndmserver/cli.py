"""Command-line entry point: an echo server with a few built-in commands."""

from __future__ import annotations

import argparse
import time
from collections.abc import Sequence

from ndmserver.context import RequestContext, ResponseContext
from ndmserver.middleware import CommandMiddleware, MiddlewareBase, MirrorMiddleware
from ndmserver.server import NdmServer


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ndmserver", add_help=False)
    options = parser.add_argument_group("Allowed options")
    options.add_argument("--help", action="store_true", help="Show this message")
    options.add_argument("-p", "--port", type=int, default=1010, help="port of server")
    options.add_argument(
        "-t", "--thread_count", type=int, default=10, help="received thread count"
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line."""
    return _build_parser().parse_args(argv)


def current_datetime() -> str:
    """The local date and time as YYYY-MM-DD HH:MM:SS."""
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())


def _shutdown(request: RequestContext, response: ResponseContext) -> None:
    response.shutdown()


def _stats(request: RequestContext, response: ResponseContext) -> None:
    response.response = f"{request.connected_user_count()}/{request.all_user_count()}"


def _time(request: RequestContext, response: ResponseContext) -> None:
    response.response = current_datetime()


def make_root_middleware() -> MiddlewareBase:
    """Commands /shutdown, /stats and /time; everything else is echoed back."""
    root = CommandMiddleware(MirrorMiddleware())
    root.add_command("shutdown", _shutdown)
    root.add_command("stats", _stats)
    root.add_command("time", _time)
    return root


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server; return the process exit status."""
    args = parse_args(argv)
    if args.help:
        print(_build_parser().format_help())
        return 1

    with NdmServer() as server:
        server.add_tcp(args.port)
        server.add_udp(args.port)
        server.root_middleware = make_root_middleware()
        print(f"opened server on the port {args.port}", flush=True)
        try:
            server.run(args.thread_count)
        except Exception:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
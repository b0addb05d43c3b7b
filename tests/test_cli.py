import re
import socket
from datetime import datetime

import pytest

from ndmserver.cli import current_datetime, main, make_root_middleware, parse_args
from ndmserver.context import RequestContext, ResponseContext
from ndmserver.user import User


def _ask(message, users=None):
    request = RequestContext(message.encode() + b"\0", users or {})
    response = ResponseContext()
    make_root_middleware().handle_request(request, response)
    return response


def test_parse_args_defaults():
    args = parse_args([])
    assert (args.port, args.thread_count, args.help) == (1010, 10, False)


def test_parse_args_short_options():
    args = parse_args(["-p", "2000", "-t", "3"])
    assert (args.port, args.thread_count) == (2000, 3)


def test_parse_args_long_options():
    args = parse_args(["--port", "4242", "--thread_count", "7"])
    assert (args.port, args.thread_count) == (4242, 7)


def test_current_datetime_format():
    text = current_datetime()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", text)
    parsed = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
    assert abs((datetime.now() - parsed).total_seconds()) < 5


def test_time_command_returns_datetime():
    response = _ask("/time")
    datetime.strptime(response.response, "%Y-%m-%d %H:%M:%S")
    assert response.can_shutdown() is False


def test_stats_command_counts_users():
    users = {1: User(), 2: User(is_closed=True)}
    assert _ask("/stats\r\n", users).response == "1/2"


def test_shutdown_command_requests_shutdown():
    response = _ask("/shutdown")
    assert response.can_shutdown() is True
    assert response.response == ""


def test_unknown_command():
    assert _ask("/nope").response == "unknown command"


def test_plain_message_is_echoed():
    assert _ask("hello there").response == "hello there"


def test_main_help_returns_one(capsys):
    assert main(["--help"]) == 1
    out = capsys.readouterr().out
    assert "--port" in out
    assert "--thread_count" in out


def test_main_raises_when_port_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as blocker:
        blocker.bind(("", 0))
        port = blocker.getsockname()[1]
        with pytest.raises(RuntimeError, match="bind socket failure"):
            main(["-p", str(port), "-t", "1"])
# ndmserver

A small message server. It listens on one port over both TCP and UDP and
passes every incoming message through a chain of middlewares. The reply is
whatever the chain puts in the response.

## Running

```
ndmserver --port 1010 --thread_count 10
```

Options:

- `-p`, `--port`: port to listen on, on every interface (default `1010`)
- `-t`, `--thread_count`: number of worker threads (default `10`)
- `--help`: print the option list and exit with status 1

The command prints `opened server on the port <port>` and serves until a
client sends `/shutdown`.

## Protocol

Each TCP read or UDP datagram of up to 1023 bytes is one message. A message
is cut at its first NUL byte.

A message that starts with `/` is a command. Trailing whitespace after the
command name is ignored.

- `/time`: replies with the server's local time as `YYYY-MM-DD HH:MM:SS`.
- `/stats`: replies with `connected/all`. The server keeps one user record
  per accepted TCP connection and one per UDP listening socket. All UDP
  clients share that one record. A record counts as connected until its
  connection closes or it has been idle for more than five seconds.
- `/shutdown`: stops the server once the reply has been sent.

An unrecognised command gets the reply `unknown command`. Any other message
is echoed back.

## Using it as a library

```python
from ndmserver.server import NdmServer
from ndmserver.middleware import CommandMiddleware, MirrorMiddleware

root = CommandMiddleware(MirrorMiddleware())
root.add_command("ping", lambda request, response: setattr(response, "response", "pong"))

with NdmServer(root) as server:
    tcp_port = server.add_tcp(1010)
    server.add_udp(1010)
    server.run(4)
```

Binding and listening
- `add_tcp` and `add_udp` bind on every interface and return the bound port.
  Port `0` picks a free port.
- If a socket cannot be created, bound or put into listening, `RuntimeError`
  is raised.

Running and stopping
- `run(thread_count)` blocks until `stop()` is called or a response asks for
  shutdown.
- `close()`, which also runs on leaving the `with` block, stops the server and
  closes the listening sockets.

Handling a message directly
- `handle_request(data, send)` passes one message through the root middleware
  and hands the encoded reply to `send`. It does this without any sockets.

Middlewares (`ndmserver.middleware`)
- `MiddlewareBase` holds an optional `successor`. Its `handle_request` does
  nothing.
- `CommandMiddleware` runs the commands registered with `add_command(name,
  command)` and forgets them with `remove_command(name)`. It passes
  non-commands to its successor.
- `MirrorMiddleware` echoes the message back.

A command or middleware receives a `RequestContext` and a `ResponseContext`
(`ndmserver.context`).

`RequestContext` offers:
- `message()`
- `connected_user_count()`
- `all_user_count()`

`ResponseContext` has:
- a `response` string to fill in
- `shutdown()`, to stop the server after replying

If a middleware raises an exception, the error is logged and an empty reply
is sent.

`ndmserver.cli.make_root_middleware()` builds the chain that the
`ndmserver` command uses.

## Limitations

- TCP messages are not framed. One read is one message, so a long or split
  message may be handled in pieces.
- There is no logging setup of its own: only standard `logging` records are
  emitted.
- There is no TLS.

## Tests

```
pip install -e .[test]
pytest
```
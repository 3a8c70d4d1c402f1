# motohses

An asyncio client and a local mock server for the HSES (High Speed Ethernet
Server) UDP protocol spoken by industrial robot controllers.

## Modules

- `motohses.message`: encoding and decoding of HSES frames
  (`RequestMessage`, `ResponseMessage`, `decode_request`, `decode_response`,
  `service_for_command`). Malformed frames raise `ProtocolError`.
- `motohses.alarm`: the `Alarm` record (60-byte complete form via
  `to_bytes` / `from_bytes`), `AlarmAttribute`, `AlarmCategory`, and helpers
  for alarm history instance numbers (`alarm_category`, `alarm_index`,
  `is_valid_history_instance`) and single-attribute encoding
  (`attribute_data`, `parse_attribute`).
- `motohses.state`: `Status` with `StatusData1` / `StatusData2`, and
  `MockState`, the in-memory controller held by the mock server (variables,
  I/O signals, registers, alarms, `AlarmHistory`, current job, files).
- `motohses.handlers`: one `CommandHandler` per command, dispatched by
  `CommandHandlerRegistry` (in `motohses.handlers.registry`).
- `motohses.server`: `MockServer`, `MockConfig`, `MockServerBuilder` and
  `start_test_server`.
- `motohses.client`: `HsesClient`, opened with `connect(addr, config=None)`.

## Installing

```
pip install .
pip install ".[test]"   # with pytest and pytest-asyncio
pytest
```

## Running the mock server

```
motohses-mock                             # 127.0.0.1, robot port 10040, file port 10041
motohses-mock 127.0.0.1 20000 20001       # host, robot port, file port
```

The server answers on both ports until interrupted. It handles these
commands:

| Command | Meaning |
|---------|---------|
| 0x00 | file control: list (0x01, 0x32), send (0x02, 0x15), receive (0x03, 0x16), delete (0x04, 0x09) |
| 0x70, 0x71 | current alarm, alarm history |
| 0x72 | status |
| 0x73, 0x74, 0x76, 0x77 | executing job, axis names, position error, torque |
| 0x78, 0x79 | I/O signals, registers |
| 0x7a–0x7e | byte, integer, double, real and string variables |
| 0x82, 0x83, 0x84 | alarm reset / error cancel, hold / servo, cycle selection |
| 0x85, 0x86, 0x87 | text display, job start, job select |
| 0x88, 0x89 | management time, system information |

Every reply echoes the request's division and request id, with the service
code or'ed with 0x80 and status 0. Unknown commands get a reply with an
empty payload; a service a handler does not support gets no reply.

In code, a server can be started on a free pair of ports:

```python
from motohses.server import start_test_server

addr, server = await start_test_server()   # ports searched from 49152 up
try:
    ...
finally:
    server.close()
```

`MockServer` is also an async context manager, and `handle_message` returns
the encoded reply to a `RequestMessage` without any socket.

## Talking to a controller

```python
import asyncio

from motohses.client import ClientConfig, connect


async def demo():
    client = await connect("127.0.0.1:10040", ClientConfig(timeout=0.5, retry_count=5))
    async with client:
        print("D000 =", await client.read_int(0))
        print("R000 =", await client.read_float(0))
        print("B000 =", await client.read_byte(0))
        status = await client.read_status()
        print("running:", status.is_running(), "servo on:", status.is_servo_on())
        alarm = await client.read_alarm_data(1, 0)          # attribute 0: complete record
        print("alarm", alarm.code, alarm.name)
        history = await client.read_alarm_history(1001, 5)  # attribute 5: name only
        print("monitor alarm", history.name)


asyncio.run(demo())
```

`ClientConfig` times are in seconds (defaults: timeout 0.3, 3 attempts,
0.1 between attempts, 8192-byte receive limit). `send_command` sends any
read-style command and returns the raw reply payload; `write_int`,
`write_float` and `write_byte` send a set request (service 0x10).

Errors are subclasses of `ClientError`: `ClientTimeoutError` when no
matching reply arrives after every attempt, `ClientProtocolError` when a
request cannot be encoded or a reply is too short, `ClientSystemError` for
an invalid address and `ClientConnectionError` for socket problems or use
after `close`.

## What is not included

- There is no client for the file control port; files can only be reached
  by building `RequestMessage`s for division 2 yourself.
- Neither the client nor the mock server reads or writes robot positions or
  position variables, and there are no motion commands. The client has no
  I/O, register or job commands either.
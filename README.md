# cmdcore

`cmdcore` builds, checks and dispatches the frames of a small binary command protocol. A control PC and the processes that share sensor and control data over local sockets use this protocol to talk to each other.

The package has three modules:

- `cmdcore.messages` holds the command codes (`CmdId`), the payload size of each command and the sensor payload records.
- `cmdcore.frame` builds frames, computes the CRC and checks received frames.
- `cmdcore.handlers` holds the command handlers, the dispatch table and a simple logger.

## Frame layout

Every frame is packed little-endian with no padding:

| field      | size | notes                                        |
|------------|------|----------------------------------------------|
| STX        | 2    | always `0xF0F0` (`PACKET_STX`)               |
| length     | 4    | payload size in bytes                        |
| source id  | 1    |                                              |
| dest id    | 1    |                                              |
| sub-module | 1    | always `0`                                   |
| command    | 2    | a `CmdId` value                              |
| payload    | n    |                                              |
| CRC        | 1    | byte sum from offset 6 up to the payload end |
| ETX        | 2    | always `0xFFFF` (`PACKET_ETX`)               |

The CRC is the low byte of that sum. A sum of `0xFF` is sent as `0x00`. `FrameHeader.pack()` and `FrameHeader.unpack()` convert the header to and from its 11 wire bytes. `HEADER_SIZE` and `TAIL_SIZE` give the header and tail sizes.

## Usage

### Building and checking a frame

```python
from cmdcore.messages import CmdId, request_size, response_size, cmd_name
from cmdcore.frame import (
    MsgId, make_request_packet, check_packet_format,
    PacketFormatStatus, describe_format_errors, UDS1_SERVER, UDS1_GPS_ID,
)

msg_id = MsgId(src_id=UDS1_GPS_ID, dst_id=UDS1_SERVER)
payload = UDS1_GPS_ID.to_bytes(4, "little")      # the UDS ID request body
packet = make_request_packet(CmdId.UDS_GET_ID, msg_id, payload)

status = check_packet_format(packet, msg_id)
if status != PacketFormatStatus.OK:
    for line in describe_format_errors(status):
        print(line)
```

Frames are built by three functions:

- `make_request_packet` and `make_send_data` size the payload by `request_size(cmd)`.
- `make_response_packet` sizes it by `response_size(cmd)`.

A shorter payload is padded with zero bytes. A longer one raises `ValueError`.

`check_packet_format` returns a `PacketFormatStatus` flag set. If the announced size does not match the packet length, it returns `SIZE_ERROR` alone. Otherwise it checks STX, the destination id, the CRC and ETX. It does not check the source id.

`print_packet_format_error` prints the flags that `describe_format_errors` lists.

`cmd_name` gives a command's display name, or `"UNKNOWN"` if the command has none. `request_size` returns 0 for a command without a request payload. `response_size` returns the one-byte result size for a command it does not know.

### Dispatching a command

```python
from cmdcore.messages import CmdId
from cmdcore.frame import MsgId, make_request_packet
from cmdcore.handlers import dispatch_command, ServerContext, log_command

packet = make_request_packet(CmdId.KEEP_ALIVE, MsgId(0x01, 0x02))
context = ServerContext()
result = dispatch_command(CmdId.KEEP_ALIVE, packet, context, log_command)
print(result.ok, result.response)   # True b'\x01'
```

`dispatch_command` looks up the handler for the command and runs it on the whole request frame. It returns a `CommandResult` whose response payload is zero-padded to the command's response size.

If you pass a logger, `dispatch_command` calls it as follows:

- with `"Start"` before the handler runs;
- with `"Success"` after the handler returns;
- with `"Fail"` if the handler raises, after which the exception propagates.

A command with no handler logs `"Unknown Command"` under `CmdId.UNKNOWN` and raises `UnknownCommandError`. `handler_for` returns the handler for a command on its own.

`log_command` prints one line per call, of the form `[LOG] CMD_ID: 0 (KEEP ALIVE), STATUS: Start`.

`CmdId.GPS_ALTITUDE_OFFSET` appends the request frame to the `send_queue` of the `ClientEndpoint` whose id is `UDS1_GPS_ID`, if such a client is in the context. `ServerContext.find_client` looks a client up by id.

The sensor commands decode the payload that follows the header, store it in `context.sensor_data` and return its packed bytes. These commands are `UDS2_GPS_DATA`, `UDS2_IMU_DATA`, `UDS2_SP_DATA`, `UDS2_EXTERN_DATA` and `UDS2_KEYBOARD_DATA`.

### Sensor records

`GpsData`, `ImuData`, `SpData`, `ExternData`, `KeyboardData` and the combined `SensorData` are dataclasses. Each provides `pack()` and the class method `unpack()`, which convert between the record and its wire bytes. Each also provides a `SIZE`. `unpack` raises `ValueError` if the data is too short.

## What this package does not do

`cmdcore` works on bytes only. It opens no sockets and runs no server or client. `ClientEndpoint` send and receive queues are plain `deque` objects, and nothing in the package transmits them. Most control commands only acknowledge: their handlers return a result byte and do not forward the command anywhere.

## Running the tests

```
pip install -e .[test]
pytest
```
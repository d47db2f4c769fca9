"""Command handlers, the dispatch table and command logging."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Optional

from cmdcore.frame import HEADER_SIZE, TAIL_SIZE, UDS1_GPS_ID
from cmdcore.messages import (
    CmdId,
    ExternData,
    GpsData,
    ImuData,
    KeyboardData,
    SensorData,
    SpData,
    cmd_name,
    request_size,
    response_size,
)

Logger = Callable[[int, str], None]


class UnknownCommandError(LookupError):
    """Raised when no handler is registered for a command code."""

    def __init__(self, cmd_id: int):
        super().__init__(f"no handler for command {cmd_id}")
        self.cmd_id = cmd_id


@dataclass
class ClientEndpoint:
    """A connected client with its outgoing and incoming message queues."""

    client_id: int
    active: bool = True
    send_queue: deque = field(default_factory=deque)
    recv_queue: deque = field(default_factory=deque)


@dataclass
class ServerContext:
    """State a handler may consult: connected clients and gathered sensor data."""

    clients: list[ClientEndpoint] = field(default_factory=list)
    sensor_data: SensorData = field(default_factory=SensorData)

    def find_client(self, client_id: int) -> Optional[ClientEndpoint]:
        """First client registered under ``client_id``, or None."""
        return next((c for c in self.clients if c.client_id == client_id), None)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of dispatching one command."""

    cmd_id: int
    ok: bool
    response: bytes


Handler = Callable[[bytes, Optional[ServerContext]], bytes]

_RESULT_OK = 0x01
_RESULT_UNKNOWN = 0x00


def _payload(request: bytes) -> bytes:
    return bytes(request)[HEADER_SIZE:]


def _status_reply(
    fields: tuple[int, ...], request: bytes, context: Optional[ServerContext]
) -> bytes:
    """Encode a response made of one byte per result field."""
    return bytes(fields)


_ack: Handler = partial(_status_reply, (_RESULT_OK,))
_bit: Handler = partial(_status_reply, (_RESULT_OK, _RESULT_OK))
_no_response: Handler = partial(_status_reply, ())
_unknown: Handler = partial(_status_reply, (_RESULT_UNKNOWN,))


def _gps_altitude_offset(request: bytes, context: Optional[ServerContext]) -> bytes:
    if context is not None:
        client = context.find_client(UDS1_GPS_ID)
        if client is not None:
            size = HEADER_SIZE + TAIL_SIZE + request_size(CmdId.GPS_ALTITUDE_OFFSET)
            client.send_queue.append(bytes(request)[:size])
    return bytes((_RESULT_OK,))


def _sensor_handler(record_type, attribute: str) -> Handler:
    def handle(request: bytes, context: Optional[ServerContext]) -> bytes:
        record = record_type.unpack(_payload(request))
        if context is not None:
            setattr(context.sensor_data, attribute, record)
        return record.pack()

    return handle


@dataclass(frozen=True)
class _Entry:
    name: str
    handler: Handler


_HANDLERS: dict[int, _Entry] = {
    CmdId.KEEP_ALIVE: _Entry("KEEP ALIVE", _ack),
    CmdId.IBIT: _Entry("IBIT", _bit),
    CmdId.RBIT: _Entry("RBIT", _bit),
    CmdId.CBIT: _Entry("CBIT", _bit),
    CmdId.POSITION_AZ_EL_SET: _Entry("AZ/EL SET", _ack),
    CmdId.TRACKING_MODE_SELECT: _Entry("TRACKING MODE SELECT", _ack),
    CmdId.TRACKING_START_MODE: _Entry("TRACKING START MODE", _ack),
    CmdId.TRAJECTORY_INFO: _Entry("TRAJECTORY INFO", _no_response),
    CmdId.SHELTER_COORDINATE: _Entry("SHELTER COORDINATE", _no_response),
    CmdId.EXTERN_DEV_COORDINATE: _Entry("EXTERN DEV COORDINATE", _no_response),
    CmdId.CANNON_COORDINATE: _Entry("CANNON COORDINATE", _no_response),
    CmdId.TRACKING_START_STOP: _Entry("TRACKING START STOP", _ack),
    CmdId.POSITION_DEG_SEND: _Entry("POSITION DEGREE SEND", _ack),
    CmdId.ACU_MODE_SELECT: _Entry("ACU MODE SELECT", _ack),
    CmdId.TIME_SYNC_CHECK: _Entry("TIME SYNC CHECK", _ack),
    CmdId.TIME_SYNC_SET: _Entry("TIME SYNC SET", _no_response),
    CmdId.POSITION_AZ_EL_OFFSET: _Entry("TRACKING MODE SELECT", _ack),
    CmdId.EXTERN_DEV_IP_SET: _Entry("EXTERN DEV IP SET", _ack),
    CmdId.SEND_ACU_DATA: _Entry("SEND ACU DATA", _no_response),
    CmdId.FPGA_TIME_SET: _Entry("FPGA TIME SET", _ack),
    CmdId.FPGA_TIME_SYNC_CHECK: _Entry("FPGA TIME SYNC CHECK", _no_response),
    CmdId.PRE_PROGRAM_START_POINT: _Entry("PROGRAM START POINT", _no_response),
    CmdId.EL_CALIBRATION_SET: _Entry("EL CALIBRATION SET", _ack),
    CmdId.TRUE_NORTH_OFFSET: _Entry("TRUE NORTH OFFSET", _ack),
    CmdId.KALMAN_FILTER_INFO: _Entry("KALMAN FILTER INFO", _ack),
    CmdId.GPS_ALTITUDE_OFFSET: _Entry("GPS ALTITUDE OFFSET", _gps_altitude_offset),
    CmdId.EXTERN_PARAM_SET: _Entry("EXTERN PARAM SET", _ack),
    CmdId.IMU_OFFSET: _Entry("IMU OFFSET", _ack),
    CmdId.TARGET_LLA: _Entry("TARGET LLA", _ack),
    CmdId.UDS_GET_ID: _Entry("GET UDS ID", _ack),
    CmdId.UDS_TRACKING_MODE: _Entry("UDS TRACKING MODE", _ack),
    CmdId.UDS2_GPS_DATA: _Entry("GPS DATA", _sensor_handler(GpsData, "gps")),
    CmdId.UDS2_IMU_DATA: _Entry("IMU DATA", _sensor_handler(ImuData, "imu")),
    CmdId.UDS2_SP_DATA: _Entry("SP DATA", _sensor_handler(SpData, "sp")),
    CmdId.UDS2_EXTERN_DATA: _Entry("EXTERNAL DATA", _sensor_handler(ExternData, "extern")),
    CmdId.UDS2_KEYBOARD_DATA: _Entry("KEYBOARD DATA", _sensor_handler(KeyboardData, "keyboard")),
    CmdId.UDS3_PROCESSING_DATA: _Entry("PROCESSING DATA", _no_response),
    CmdId.UDS4_CTRL_DATA: _Entry("CONTROLL DATA", _no_response),
    CmdId.UDS4_COMMAND: _Entry("COMMAND", _no_response),
    CmdId.UNKNOWN: _Entry("UNKOWN COMMAND", _unknown),
}


def handler_for(cmd_id: int) -> Handler:
    """The handler registered for ``cmd_id``; raises UnknownCommandError if none."""
    try:
        return _HANDLERS[cmd_id].handler
    except KeyError:
        raise UnknownCommandError(cmd_id) from None


def dispatch_command(
    cmd_id: int,
    request: bytes,
    context: Optional[ServerContext] = None,
    logger: Optional[Logger] = None,
) -> CommandResult:
    """Run the handler for ``cmd_id`` on a whole request frame.

    The response payload is zero-padded to the command's response size.
    """
    try:
        handler = handler_for(cmd_id)
    except UnknownCommandError:
        if logger:
            logger(CmdId.UNKNOWN, "Unknown Command")
        raise
    if logger:
        logger(cmd_id, "Start")
    try:
        response = handler(bytes(request), context)
    except Exception:
        if logger:
            logger(cmd_id, "Fail")
        raise
    if logger:
        logger(cmd_id, "Success")
    return CommandResult(cmd_id, True, response.ljust(response_size(cmd_id), b"\x00"))


def log_command(cmd_id: int, status: str) -> None:
    """Print one log line for a command and its status."""
    print(f"[LOG] CMD_ID: {int(cmd_id)} ({cmd_name(cmd_id)}), STATUS: {status}")
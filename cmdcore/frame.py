"""Packet framing: header and tail layout, CRC, building and checking frames."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntFlag

from cmdcore.messages import request_size, response_size

CRC_START_POINT = 6
EXCLUDING_CRC_POINT = 3

PACKET_STX = 0xF0F0
PACKET_ETX = 0xFFFF

UNKNOWN_ID = 0x00
CTRL_PC_ID = 0x01
MY_TCP_ID = 0x02
UDS1_SERVER_ID = 0x11
UDS2_SERVER_ID = 0x12
UDS3_SERVER_ID = 0x13
UDS4_SERVER_ID = 0x14
GPS_ID = 0x21
IMU_ID = 0x22
SP_ID = 0x23
EXTERN_ID = 0x24
KEYBOARD_ID = 0x25
PROCESS_SENSOR_ID = 0x26

UDS1_PATH = "/tmp/uds1.sock"
UDS2_PATH = "/tmp/uds2.sock"
UDS3_PATH = "/tmp/uds3.sock"
UDS4_PATH = "/tmp/uds4.sock"

UDS1_SERVER = 0x11
UDS1_ACU_ID = 0x12
UDS1_GPS_ID = 0x13
UDS1_IMU_ID = 0x14
UDS1_EXTERN_ID = 0x15
UDS1_SP_ID = 0x16

_HEADER = struct.Struct("<HiBBBh")
_TAIL = struct.Struct("<BH")

HEADER_SIZE = _HEADER.size
TAIL_SIZE = _TAIL.size


class PacketFormatStatus(IntFlag):
    """Result of checking a received packet; flags combine."""

    OK = 0x00
    STX_ERROR = 0x01
    SRC_ID_ERROR = 0x02
    DST_ID_ERROR = 0x04
    CRC_ERROR = 0x08
    ETX_ERROR = 0x10
    SIZE_ERROR = 0x20


@dataclass(frozen=True)
class MsgId:
    """Source and destination identifiers of a message."""

    src_id: int = UNKNOWN_ID
    dst_id: int = UNKNOWN_ID


@dataclass
class FrameHeader:
    """Fixed header that starts every frame."""

    stx: int = PACKET_STX
    length: int = 0
    msg_id: MsgId = field(default_factory=MsgId)
    sub_module: int = 0
    cmd: int = 0

    SIZE = HEADER_SIZE

    def pack(self) -> bytes:
        return _HEADER.pack(
            self.stx,
            self.length,
            self.msg_id.src_id & 0xFF,
            self.msg_id.dst_id & 0xFF,
            self.sub_module & 0xFF,
            self.cmd,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "FrameHeader":
        data = bytes(data)
        if len(data) < HEADER_SIZE:
            raise ValueError(f"frame header needs {HEADER_SIZE} bytes, got {len(data)}")
        stx, length, src, dst, sub, cmd = _HEADER.unpack_from(data)
        return cls(stx, length, MsgId(src, dst), sub, cmd)


def calculate_crc(packet: bytes) -> int:
    """Byte sum over the CRC range of a whole packet; 0xFF is folded to 0."""
    crc = sum(bytes(packet)[CRC_START_POINT:len(packet) - EXCLUDING_CRC_POINT]) & 0xFF
    return 0 if crc == 0xFF else crc


def check_crc(packet: bytes) -> bool:
    """True when the CRC byte of ``packet`` matches its contents."""
    packet = bytes(packet)
    if len(packet) < EXCLUDING_CRC_POINT:
        return False
    return calculate_crc(packet) == packet[len(packet) - EXCLUDING_CRC_POINT]


def total_recv_size(data: bytes) -> int:
    """Whole packet size announced by the header at the start of ``data``."""
    header = FrameHeader.unpack(data)
    return HEADER_SIZE + header.length + TAIL_SIZE


def _build(cmd: int, msg_id: MsgId, payload: bytes, length: int) -> bytes:
    payload = bytes(payload)
    if len(payload) > length:
        raise ValueError(f"payload of {len(payload)} bytes exceeds {length} for command {cmd}")
    payload = payload.ljust(length, b"\x00")
    header = FrameHeader(PACKET_STX, length, msg_id, 0, cmd)
    draft = header.pack() + payload + _TAIL.pack(0, PACKET_ETX)
    return header.pack() + payload + _TAIL.pack(calculate_crc(draft), PACKET_ETX)


def make_request_packet(cmd: int, msg_id: MsgId, payload: bytes = b"") -> bytes:
    """Frame ``payload`` as a request for ``cmd``, zero-padded to the request size."""
    return _build(cmd, msg_id, payload, request_size(cmd))


def make_response_packet(cmd: int, msg_id: MsgId, payload: bytes = b"") -> bytes:
    """Frame ``payload`` as a response for ``cmd``, zero-padded to the response size."""
    return _build(cmd, msg_id, payload, response_size(cmd))


def make_send_data(cmd: int, msg_id: MsgId, payload: bytes = b"") -> bytes:
    """Frame ``payload`` for sending, sized like a request."""
    return _build(cmd, msg_id, payload, request_size(cmd))


def check_packet_format(packet: bytes, msg_id: MsgId) -> PacketFormatStatus:
    """Check a received packet against the expected destination."""
    packet = bytes(packet)
    try:
        total = total_recv_size(packet)
    except ValueError:
        return PacketFormatStatus.SIZE_ERROR
    if total != len(packet):
        return PacketFormatStatus.SIZE_ERROR

    header = FrameHeader.unpack(packet)
    result = PacketFormatStatus.OK
    if header.stx != PACKET_STX:
        result |= PacketFormatStatus.STX_ERROR
    if header.msg_id.dst_id != msg_id.dst_id & 0xFF:
        result |= PacketFormatStatus.DST_ID_ERROR
    if not check_crc(packet):
        result |= PacketFormatStatus.CRC_ERROR
    _, etx = _TAIL.unpack_from(packet, HEADER_SIZE + header.length)
    if etx != PACKET_ETX:
        result |= PacketFormatStatus.ETX_ERROR
    return result


_ERROR_TEXT = (
    (PacketFormatStatus.SIZE_ERROR, "packet size mismatch"),
    (PacketFormatStatus.STX_ERROR, "STX error (start bytes)"),
    (PacketFormatStatus.SRC_ID_ERROR, "source ID error"),
    (PacketFormatStatus.DST_ID_ERROR, "destination ID error"),
    (PacketFormatStatus.CRC_ERROR, "CRC error"),
    (PacketFormatStatus.ETX_ERROR, "ETX error (end bytes)"),
)


def describe_format_errors(status: int) -> list[str]:
    """Descriptions of every error flag set in ``status``."""
    return [text for flag, text in _ERROR_TEXT if status & flag]


def print_packet_format_error(status: int) -> None:
    """Print a report of the error flags set in ``status``."""
    print("Packet format errors:")
    for text in describe_format_errors(status):
        print(f" - {text}")
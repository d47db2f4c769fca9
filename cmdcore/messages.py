"""Command identifiers, payload sizes and sensor payload records."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar


class CmdId(IntEnum):
    """Command codes carried in the frame header."""

    KEEP_ALIVE = 0
    IBIT = 1
    RBIT = 2
    CBIT = 3
    POSITION_AZ_EL_SET = 4
    TRACKING_MODE_SELECT = 5
    TRACKING_START_MODE = 6
    TRAJECTORY_INFO = 7
    SHELTER_COORDINATE = 8
    EXTERN_DEV_COORDINATE = 9
    CANNON_COORDINATE = 10
    TRACKING_START_STOP = 11
    POSITION_DEG_SEND = 12
    ACU_MODE_SELECT = 13
    TIME_SYNC_CHECK = 14
    TIME_SYNC_SET = 15
    POSITION_AZ_EL_OFFSET = 16
    EXTERN_DEV_IP_SET = 17
    SEND_ACU_DATA = 18
    FPGA_TIME_SET = 19
    FPGA_TIME_SYNC_CHECK = 20
    PRE_PROGRAM_START_POINT = 0x16
    EL_CALIBRATION_SET = 0x17
    TRUE_NORTH_OFFSET = 0x18
    KALMAN_FILTER_INFO = 0x1A
    GPS_ALTITUDE_OFFSET = 0x1B
    EXTERN_PARAM_SET = 0x1C
    IMU_OFFSET = 0x1D
    TARGET_LLA = 0x1E

    UDS_GET_ID = 100
    UDS_TRACKING_MODE = 101
    IPC_SENSOR_DATA = 102

    UDS2_SENSOR_DATA = 200
    UDS2_GPS_DATA = 201
    UDS2_IMU_DATA = 202
    UDS2_SP_DATA = 203
    UDS2_EXTERN_DATA = 204
    UDS2_KEYBOARD_DATA = 205

    UDS3_PROCESSING_DATA = 300

    UDS4_CTRL_DATA = 400
    UDS4_COMMAND = 401

    UNKNOWN = 500


_THREE_DOUBLES = struct.Struct("<3d")
_TWO_DOUBLES = struct.Struct("<2d")


def _unpack_values(name: str, layout: struct.Struct, data: bytes) -> tuple:
    try:
        return layout.unpack_from(bytes(data))
    except struct.error as exc:
        raise ValueError(f"{name} needs {layout.size} bytes, got {len(data)}") from exc


@dataclass
class GpsData:
    """GPS position: latitude, longitude, altitude."""

    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0

    SIZE: ClassVar[int] = _THREE_DOUBLES.size

    def pack(self) -> bytes:
        return _THREE_DOUBLES.pack(self.latitude, self.longitude, self.altitude)

    @classmethod
    def unpack(cls, data: bytes) -> "GpsData":
        return cls(*_unpack_values(cls.__name__, _THREE_DOUBLES, data))


@dataclass
class ImuData:
    """IMU attitude: roll, pitch, yaw."""

    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    SIZE: ClassVar[int] = _THREE_DOUBLES.size

    def pack(self) -> bytes:
        return _THREE_DOUBLES.pack(self.roll, self.pitch, self.yaw)

    @classmethod
    def unpack(cls, data: bytes) -> "ImuData":
        return cls(*_unpack_values(cls.__name__, _THREE_DOUBLES, data))


@dataclass
class SpData:
    """Signal-processor azimuth and elevation."""

    az: float = 0.0
    el: float = 0.0

    SIZE: ClassVar[int] = _TWO_DOUBLES.size

    def pack(self) -> bytes:
        return _TWO_DOUBLES.pack(self.az, self.el)

    @classmethod
    def unpack(cls, data: bytes) -> "SpData":
        return cls(*_unpack_values(cls.__name__, _TWO_DOUBLES, data))


@dataclass
class ExternData:
    """Three values reported by the external device."""

    data1: float = 0.0
    data2: float = 0.0
    data3: float = 0.0

    SIZE: ClassVar[int] = _THREE_DOUBLES.size

    def pack(self) -> bytes:
        return _THREE_DOUBLES.pack(self.data1, self.data2, self.data3)

    @classmethod
    def unpack(cls, data: bytes) -> "ExternData":
        return cls(*_unpack_values(cls.__name__, _THREE_DOUBLES, data))


@dataclass
class KeyboardData:
    """Manual azimuth and elevation from the keyboard."""

    az: float = 0.0
    el: float = 0.0

    SIZE: ClassVar[int] = _TWO_DOUBLES.size

    def pack(self) -> bytes:
        return _TWO_DOUBLES.pack(self.az, self.el)

    @classmethod
    def unpack(cls, data: bytes) -> "KeyboardData":
        return cls(*_unpack_values(cls.__name__, _TWO_DOUBLES, data))


_SENSOR_PARTS = (GpsData, ImuData, SpData, ExternData, KeyboardData)


@dataclass
class SensorData:
    """All sensor readings gathered into one record."""

    gps: GpsData = field(default_factory=GpsData)
    imu: ImuData = field(default_factory=ImuData)
    sp: SpData = field(default_factory=SpData)
    extern: ExternData = field(default_factory=ExternData)
    keyboard: KeyboardData = field(default_factory=KeyboardData)

    SIZE: ClassVar[int] = sum(part.SIZE for part in _SENSOR_PARTS)

    def pack(self) -> bytes:
        return b"".join(
            part.pack() for part in (self.gps, self.imu, self.sp, self.extern, self.keyboard)
        )

    @classmethod
    def unpack(cls, data: bytes) -> "SensorData":
        data = bytes(data)
        if len(data) < cls.SIZE:
            raise ValueError(f"SensorData needs {cls.SIZE} bytes, got {len(data)}")
        parts = []
        offset = 0
        for part in _SENSOR_PARTS:
            parts.append(part.unpack(data[offset:offset + part.SIZE]))
            offset += part.SIZE
        return cls(*parts)


def _size(fmt: str) -> int:
    return struct.calcsize("<" + fmt)


_POINTER_SIZE = struct.calcsize("P")
_KALMAN_CFG = "4h2ih"

_REQUEST_SIZES: dict[int, int] = {
    CmdId.KEEP_ALIVE: _size("b"),
    CmdId.IBIT: _size("b"),
    CmdId.RBIT: _size("b"),
    CmdId.CBIT: _size("b"),
    CmdId.POSITION_AZ_EL_SET: _size("2d"),
    CmdId.TRACKING_MODE_SELECT: _size("b"),
    CmdId.TRACKING_START_MODE: _size("b"),
    CmdId.TRAJECTORY_INFO: _POINTER_SIZE,
    CmdId.SHELTER_COORDINATE: _size("3d"),
    CmdId.EXTERN_DEV_COORDINATE: _size("3d"),
    CmdId.CANNON_COORDINATE: _size("3d"),
    CmdId.TRACKING_START_STOP: _size("b"),
    CmdId.POSITION_DEG_SEND: _size("b"),
    CmdId.ACU_MODE_SELECT: _size("b"),
    CmdId.TIME_SYNC_CHECK: _size("b"),
    CmdId.TIME_SYNC_SET: _size("h5b"),
    CmdId.POSITION_AZ_EL_OFFSET: _size("2i"),
    CmdId.EXTERN_DEV_IP_SET: _size("2i"),
    CmdId.SEND_ACU_DATA: _size("b"),
    CmdId.FPGA_TIME_SET: _size("b"),
    CmdId.FPGA_TIME_SYNC_CHECK: _size("b"),
    CmdId.PRE_PROGRAM_START_POINT: _size("2i"),
    CmdId.EL_CALIBRATION_SET: _POINTER_SIZE,
    CmdId.TRUE_NORTH_OFFSET: _size("i"),
    CmdId.KALMAN_FILTER_INFO: _size("b" + _KALMAN_CFG * 3),
    CmdId.GPS_ALTITUDE_OFFSET: _size("d"),
    CmdId.EXTERN_PARAM_SET: _size("2b3i"),
    CmdId.IMU_OFFSET: _size("3d"),
    CmdId.TARGET_LLA: _size("3d"),
    CmdId.UDS_GET_ID: _size("i"),
    CmdId.UDS_TRACKING_MODE: _size("b"),
    CmdId.UDS2_GPS_DATA: GpsData.SIZE,
    CmdId.UDS2_IMU_DATA: ImuData.SIZE,
    CmdId.UDS2_SP_DATA: SpData.SIZE,
    CmdId.UDS2_EXTERN_DATA: ExternData.SIZE,
    CmdId.UDS2_KEYBOARD_DATA: KeyboardData.SIZE,
    CmdId.UDS3_PROCESSING_DATA: _size("2d"),
    CmdId.UDS4_CTRL_DATA: _size("b"),
    CmdId.UDS4_COMMAND: _size("b"),
}

_UNKNOWN_RESPONSE_SIZE = _size("b")

_RESPONSE_SIZES: dict[int, int] = {
    CmdId.KEEP_ALIVE: _size("b"),
    CmdId.IBIT: _size("2b"),
    CmdId.RBIT: _size("2b"),
    CmdId.CBIT: _size("2b"),
    CmdId.POSITION_AZ_EL_SET: _size("b"),
    CmdId.TRACKING_MODE_SELECT: _size("b"),
    CmdId.TRACKING_START_MODE: _size("b"),
    CmdId.TRAJECTORY_INFO: _size("b"),
    CmdId.SHELTER_COORDINATE: _size("b"),
    CmdId.EXTERN_DEV_COORDINATE: _size("b"),
    CmdId.CANNON_COORDINATE: _size("b"),
    CmdId.TRACKING_START_STOP: _size("b"),
    CmdId.POSITION_DEG_SEND: _size("b"),
    CmdId.ACU_MODE_SELECT: _size("b"),
    CmdId.TIME_SYNC_CHECK: _size("b"),
    CmdId.TIME_SYNC_SET: _size("h5b"),
    CmdId.POSITION_AZ_EL_OFFSET: _size("b"),
    CmdId.EXTERN_DEV_IP_SET: _size("b"),
    CmdId.SEND_ACU_DATA: _POINTER_SIZE,
    CmdId.FPGA_TIME_SET: _size("b"),
    CmdId.FPGA_TIME_SYNC_CHECK: _size("i"),
    CmdId.PRE_PROGRAM_START_POINT: _size("b"),
    CmdId.EL_CALIBRATION_SET: _size("b"),
    CmdId.TRUE_NORTH_OFFSET: _size("b"),
    CmdId.KALMAN_FILTER_INFO: _size("b"),
    CmdId.GPS_ALTITUDE_OFFSET: _size("b"),
    CmdId.EXTERN_PARAM_SET: _size("b"),
    CmdId.IMU_OFFSET: _size("b"),
    CmdId.TARGET_LLA: _size("b"),
    CmdId.UDS_GET_ID: _size("b"),
    CmdId.UDS_TRACKING_MODE: _size("b"),
    CmdId.IPC_SENSOR_DATA: SensorData.SIZE,
    CmdId.UDS2_GPS_DATA: GpsData.SIZE,
    CmdId.UDS2_IMU_DATA: ImuData.SIZE,
    CmdId.UDS2_SP_DATA: SpData.SIZE,
    CmdId.UDS2_EXTERN_DATA: ExternData.SIZE,
    CmdId.UDS2_KEYBOARD_DATA: KeyboardData.SIZE,
    CmdId.UDS3_PROCESSING_DATA: _size("2d"),
    CmdId.UDS4_CTRL_DATA: _size("2d"),
    CmdId.UDS4_COMMAND: _size("b"),
}

_NAMES: dict[int, str] = {
    CmdId.KEEP_ALIVE: "KEEP ALIVE",
    CmdId.IBIT: "IBIT",
    CmdId.RBIT: "RBIT",
    CmdId.CBIT: "CBIT",
    CmdId.POSITION_AZ_EL_SET: "AZ/EL SET",
    CmdId.TRACKING_MODE_SELECT: "TRACKING MODE SELECT",
    CmdId.TRACKING_START_MODE: "TRACKING START MODE",
    CmdId.TRAJECTORY_INFO: "TRAJECTORY INFO",
    CmdId.SHELTER_COORDINATE: "SHELTER COORDINATE",
    CmdId.EXTERN_DEV_COORDINATE: "EXTERN DEV COORDINATE",
    CmdId.CANNON_COORDINATE: "CANNON COORDINATE",
    CmdId.TRACKING_START_STOP: "TRACKING START STOP",
    CmdId.POSITION_DEG_SEND: "POSITION DEGREE SEND",
    CmdId.ACU_MODE_SELECT: "ACU MODE SELECT",
    CmdId.TIME_SYNC_CHECK: "TIME SYNC CHECK",
    CmdId.TIME_SYNC_SET: "TIME SYNC SET",
    CmdId.POSITION_AZ_EL_OFFSET: "TRACKING MODE SELECT",
    CmdId.EXTERN_DEV_IP_SET: "EXTERN DEV IP SET",
    CmdId.SEND_ACU_DATA: "SEND ACU DATA",
    CmdId.FPGA_TIME_SET: "FPGA TIME SET",
    CmdId.FPGA_TIME_SYNC_CHECK: "FPGA TIME SYNC CHECK",
    CmdId.PRE_PROGRAM_START_POINT: "PROGRAM START POINT",
    CmdId.EL_CALIBRATION_SET: "EL CALIBRATION SET",
    CmdId.TRUE_NORTH_OFFSET: "TRUE NORTH OFFSET",
    CmdId.KALMAN_FILTER_INFO: "KALMAN FILTER INFO",
    CmdId.GPS_ALTITUDE_OFFSET: "GPS ALTITUDE OFFSET",
    CmdId.EXTERN_PARAM_SET: "EXTERN PARAM SET",
    CmdId.IMU_OFFSET: "IMU OFFSET",
    CmdId.TARGET_LLA: "TARGET LLA",
    CmdId.UDS_GET_ID: "UDS GET ID",
    CmdId.UDS_TRACKING_MODE: "UDS TRACKING MODE",
    CmdId.UDS2_GPS_DATA: "GPS DATA",
    CmdId.UDS2_IMU_DATA: "IMU DATA",
    CmdId.UDS2_SP_DATA: "SP DATA",
    CmdId.UDS2_EXTERN_DATA: "EXTERNAL DATA",
    CmdId.UDS2_KEYBOARD_DATA: "KEYBOARD DATA",
    CmdId.UDS3_PROCESSING_DATA: "PROCESSING DATA",
    CmdId.UDS4_CTRL_DATA: "CONTROLL DATA",
    CmdId.UDS4_COMMAND: "COMMAND",
}


def request_size(cmd_id: int) -> int:
    """Payload size of a request for ``cmd_id``; 0 when the command has none."""
    return _REQUEST_SIZES.get(cmd_id, 0)


def response_size(cmd_id: int) -> int:
    """Payload size of a response for ``cmd_id``; unknown commands get the one-byte result."""
    return _RESPONSE_SIZES.get(cmd_id, _UNKNOWN_RESPONSE_SIZE)


def cmd_name(cmd_id: int) -> str:
    """Human-readable name of ``cmd_id``, or ``"UNKNOWN"``."""
    return _NAMES.get(cmd_id, "UNKNOWN")
import pytest

from cmdcore.frame import (
    HEADER_SIZE,
    TAIL_SIZE,
    UDS1_ACU_ID,
    UDS1_GPS_ID,
    UDS1_SERVER,
    MsgId,
    make_request_packet,
)
from cmdcore.handlers import (
    ClientEndpoint,
    CommandResult,
    ServerContext,
    UnknownCommandError,
    dispatch_command,
    handler_for,
    log_command,
)
from cmdcore.messages import CmdId, ExternData, GpsData, ImuData, request_size, response_size

MSG = MsgId(UDS1_ACU_ID, UDS1_SERVER)


def _context():
    return ServerContext(
        clients=[ClientEndpoint(UDS1_ACU_ID), ClientEndpoint(UDS1_GPS_ID)]
    )


def test_keep_alive_response():
    result = dispatch_command(CmdId.KEEP_ALIVE, make_request_packet(CmdId.KEEP_ALIVE, MSG))
    assert result == CommandResult(CmdId.KEEP_ALIVE, True, b"\x01")


@pytest.mark.parametrize("cmd", [CmdId.IBIT, CmdId.RBIT, CmdId.CBIT])
def test_bit_responses(cmd):
    result = dispatch_command(cmd, make_request_packet(cmd, MSG))
    assert result.response == b"\x01\x01"


def test_unknown_command_handler_answers_zero():
    result = dispatch_command(CmdId.UNKNOWN, make_request_packet(CmdId.UNKNOWN, MSG))
    assert result.response == b"\x00"


def test_silent_handler_response_is_zero_padded():
    result = dispatch_command(CmdId.TIME_SYNC_SET, make_request_packet(CmdId.TIME_SYNC_SET, MSG))
    assert result.response == b"\x00" * response_size(CmdId.TIME_SYNC_SET)


def test_unregistered_command_raises_and_logs():
    calls = []
    with pytest.raises(UnknownCommandError) as info:
        dispatch_command(CmdId.IPC_SENSOR_DATA, b"", logger=lambda c, s: calls.append((c, s)))
    assert info.value.cmd_id == CmdId.IPC_SENSOR_DATA
    assert calls == [(CmdId.UNKNOWN, "Unknown Command")]


def test_handler_for_unknown_raises():
    with pytest.raises(UnknownCommandError):
        handler_for(9999)


def test_logger_sees_start_and_success():
    calls = []
    dispatch_command(
        CmdId.TARGET_LLA,
        make_request_packet(CmdId.TARGET_LLA, MSG),
        logger=lambda c, s: calls.append((c, s)),
    )
    assert calls == [(CmdId.TARGET_LLA, "Start"), (CmdId.TARGET_LLA, "Success")]


def test_gps_altitude_offset_forwards_request_to_gps_client():
    ctx = _context()
    packet = make_request_packet(CmdId.GPS_ALTITUDE_OFFSET, MSG, b"\x11" * 8)
    result = dispatch_command(CmdId.GPS_ALTITUDE_OFFSET, packet, ctx)
    assert result.response == b"\x01"
    gps = ctx.find_client(UDS1_GPS_ID)
    assert list(gps.send_queue) == [packet]
    assert len(gps.send_queue[0]) == HEADER_SIZE + TAIL_SIZE + request_size(CmdId.GPS_ALTITUDE_OFFSET)
    assert not ctx.find_client(UDS1_ACU_ID).send_queue


def test_gps_altitude_offset_without_gps_client():
    ctx = ServerContext(clients=[ClientEndpoint(UDS1_ACU_ID)])
    packet = make_request_packet(CmdId.GPS_ALTITUDE_OFFSET, MSG)
    result = dispatch_command(CmdId.GPS_ALTITUDE_OFFSET, packet, ctx)
    assert result.response == b"\x01"
    assert not ctx.clients[0].send_queue


def test_find_client_missing_returns_none():
    assert _context().find_client(0x7E) is None


def test_gps_data_updates_sensor_record():
    ctx = _context()
    gps = GpsData(37.5, 127.0, 42.0)
    packet = make_request_packet(CmdId.UDS2_GPS_DATA, MSG, gps.pack())
    result = dispatch_command(CmdId.UDS2_GPS_DATA, packet, ctx)
    assert ctx.sensor_data.gps == gps
    assert result.response == gps.pack()


def test_imu_and_extern_data_update_sensor_record():
    ctx = _context()
    imu = ImuData(1.5, -2.25, 3.0)
    ext = ExternData(4.0, 5.5, 6.25)
    dispatch_command(CmdId.UDS2_IMU_DATA, make_request_packet(CmdId.UDS2_IMU_DATA, MSG, imu.pack()), ctx)
    dispatch_command(CmdId.UDS2_EXTERN_DATA, make_request_packet(CmdId.UDS2_EXTERN_DATA, MSG, ext.pack()), ctx)
    assert ctx.sensor_data.imu == imu
    assert ctx.sensor_data.extern == ext
    assert ctx.sensor_data.gps == GpsData()


def test_sensor_handler_rejects_short_request():
    calls = []
    with pytest.raises(ValueError):
        dispatch_command(CmdId.UDS2_GPS_DATA, b"\x00" * HEADER_SIZE, logger=lambda c, s: calls.append(s))
    assert calls == ["Start", "Fail"]


def test_log_command_output(capsys):
    log_command(CmdId.KEEP_ALIVE, "Start")
    assert capsys.readouterr().out == "[LOG] CMD_ID: 0 (KEEP ALIVE), STATUS: Start\n"


def test_log_command_unknown_name(capsys):
    log_command(CmdId.UNKNOWN, "Unknown Command")
    assert capsys.readouterr().out == "[LOG] CMD_ID: 500 (UNKNOWN), STATUS: Unknown Command\n"
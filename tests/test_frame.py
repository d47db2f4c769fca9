import struct

import pytest

from cmdcore.frame import (
    HEADER_SIZE,
    PACKET_STX,
    TAIL_SIZE,
    UDS1_ACU_ID,
    UDS1_SERVER,
    FrameHeader,
    MsgId,
    PacketFormatStatus,
    calculate_crc,
    check_crc,
    check_packet_format,
    describe_format_errors,
    make_request_packet,
    make_response_packet,
    make_send_data,
    print_packet_format_error,
    total_recv_size,
)
from cmdcore.messages import CmdId, GpsData, request_size, response_size

CLIENT_TO_SERVER = MsgId(UDS1_ACU_ID, UDS1_SERVER)


def _id_packet():
    return make_request_packet(
        CmdId.UDS_GET_ID, CLIENT_TO_SERVER, struct.pack("<i", UDS1_ACU_ID)
    )


def test_header_and_tail_sizes():
    header = FrameHeader(PACKET_STX, 1, CLIENT_TO_SERVER, 0, CmdId.KEEP_ALIVE)
    assert len(header.pack()) == 11
    packet = make_request_packet(CmdId.KEEP_ALIVE, CLIENT_TO_SERVER, b"\x00")
    assert len(packet) == 11 + 1 + 3
    assert HEADER_SIZE + TAIL_SIZE == 14


def test_header_round_trip():
    header = FrameHeader(PACKET_STX, 24, MsgId(0x13, 0x11), 0, CmdId.UDS2_GPS_DATA)
    raw = header.pack()
    assert len(raw) == HEADER_SIZE
    assert raw[:2] == b"\xf0\xf0"
    assert FrameHeader.unpack(raw) == header


def test_header_unpack_too_short():
    with pytest.raises(ValueError):
        FrameHeader.unpack(b"\xf0\xf0\x00")


def test_request_packet_layout():
    packet = _id_packet()
    assert len(packet) == HEADER_SIZE + request_size(CmdId.UDS_GET_ID) + TAIL_SIZE
    assert packet[:2] == b"\xf0\xf0"
    assert packet[-2:] == b"\xff\xff"
    header = FrameHeader.unpack(packet)
    assert header.cmd == CmdId.UDS_GET_ID
    assert header.msg_id == CLIENT_TO_SERVER
    assert header.sub_module == 0
    assert struct.unpack_from("<i", packet, HEADER_SIZE)[0] == UDS1_ACU_ID


def test_request_packet_crc_matches():
    packet = _id_packet()
    assert packet[-3] == calculate_crc(packet)
    assert check_crc(packet)


def test_request_packet_passes_format_check():
    assert check_packet_format(_id_packet(), CLIENT_TO_SERVER) == PacketFormatStatus.OK


def test_response_packet_uses_response_size():
    packet = make_response_packet(CmdId.IBIT, MsgId(UDS1_SERVER, UDS1_ACU_ID), b"\x01\x01")
    assert FrameHeader.unpack(packet).length == response_size(CmdId.IBIT)
    assert check_packet_format(packet, MsgId(UDS1_SERVER, UDS1_ACU_ID)) == PacketFormatStatus.OK


def test_send_data_matches_request_packet():
    payload = GpsData(37.5, 127.0, 50.0).pack()
    assert make_send_data(CmdId.UDS2_GPS_DATA, CLIENT_TO_SERVER, payload) == make_request_packet(
        CmdId.UDS2_GPS_DATA, CLIENT_TO_SERVER, payload
    )


def test_short_payload_is_zero_padded():
    packet = make_request_packet(CmdId.UDS_GET_ID, CLIENT_TO_SERVER)
    assert packet[HEADER_SIZE:HEADER_SIZE + 4] == bytes(4)
    assert check_crc(packet)


def test_oversized_payload_rejected():
    with pytest.raises(ValueError):
        make_request_packet(CmdId.KEEP_ALIVE, CLIENT_TO_SERVER, b"\x01\x02")


def test_crc_folds_ff_to_zero():
    packet = bytes(6) + b"\xff" + bytes(3)
    assert calculate_crc(packet) == 0


def test_total_recv_size():
    packet = _id_packet()
    assert total_recv_size(packet) == len(packet)
    with pytest.raises(ValueError):
        total_recv_size(packet[:5])


def test_stx_error():
    packet = bytearray(_id_packet())
    packet[0] = 0x00
    assert check_packet_format(bytes(packet), CLIENT_TO_SERVER) == PacketFormatStatus.STX_ERROR


def test_dst_id_error():
    status = check_packet_format(_id_packet(), MsgId(UDS1_SERVER, UDS1_ACU_ID))
    assert status == PacketFormatStatus.DST_ID_ERROR


def test_crc_error():
    packet = bytearray(_id_packet())
    packet[HEADER_SIZE] ^= 0x01
    assert not check_crc(bytes(packet))
    assert check_packet_format(bytes(packet), CLIENT_TO_SERVER) == PacketFormatStatus.CRC_ERROR


def test_etx_error():
    packet = bytearray(_id_packet())
    packet[-1] = 0x00
    assert check_packet_format(bytes(packet), CLIENT_TO_SERVER) == PacketFormatStatus.ETX_ERROR


def test_size_error_stops_other_checks():
    packet = bytearray(_id_packet())
    packet[0] = 0x00
    assert check_packet_format(bytes(packet[:-1]), CLIENT_TO_SERVER) == PacketFormatStatus.SIZE_ERROR
    assert check_packet_format(b"\xf0", CLIENT_TO_SERVER) == PacketFormatStatus.SIZE_ERROR


def test_errors_combine():
    packet = bytearray(_id_packet())
    packet[0] = 0x00
    packet[-1] = 0x00
    status = check_packet_format(bytes(packet), MsgId(UDS1_SERVER, UDS1_ACU_ID))
    assert status == (
        PacketFormatStatus.STX_ERROR
        | PacketFormatStatus.DST_ID_ERROR
        | PacketFormatStatus.ETX_ERROR
    )


def test_describe_format_errors():
    assert describe_format_errors(PacketFormatStatus.OK) == []
    all_flags = PacketFormatStatus(0x3F)
    assert len(describe_format_errors(all_flags)) == 6
    assert describe_format_errors(PacketFormatStatus.CRC_ERROR) == ["CRC error"]


def test_print_packet_format_error(capsys):
    print_packet_format_error(PacketFormatStatus.SIZE_ERROR | PacketFormatStatus.ETX_ERROR)
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[1:] == [
        f" - {text}"
        for text in describe_format_errors(
            PacketFormatStatus.SIZE_ERROR | PacketFormatStatus.ETX_ERROR
        )
    ]


def test_etx_on_wire():
    packet = make_response_packet(CmdId.KEEP_ALIVE, MsgId(UDS1_SERVER, UDS1_ACU_ID), b"\x01")
    assert packet[-2:] == b"\xff\xff"
    assert packet[:2] == b"\xf0\xf0"
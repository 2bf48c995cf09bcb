import socket

import pytest

from jbodraid.jbod import BLOCK_SIZE, Command, encode_op
from jbodraid.net import (
    HEADER_LEN,
    INFO_HAS_BLOCK,
    JbodClient,
    NetError,
    Response,
    decode_header,
    encode_packet,
)


@pytest.fixture
def pair():
    client_end, server_end = socket.socketpair()
    yield client_end, server_end
    client_end.close()
    server_end.close()


def _recv_all(sock, size):
    data = bytearray()
    while len(data) < size:
        data += sock.recv(size - len(data))
    return bytes(data)


def test_encode_packet_without_block_is_header_only():
    assert encode_packet(0x01020304) == b"\x01\x02\x03\x04\x00"


def test_encode_packet_with_block_sets_info_bit():
    block = bytes(range(256))
    packet = encode_packet(7, block)
    assert len(packet) == HEADER_LEN + BLOCK_SIZE
    assert packet[4] == INFO_HAS_BLOCK
    assert packet[HEADER_LEN:] == block


def test_encode_packet_rejects_short_block():
    with pytest.raises(ValueError):
        encode_packet(0, b"abc")


def test_encode_packet_rejects_large_opcode():
    with pytest.raises(ValueError):
        encode_packet(1 << 32)


def test_decode_header_round_trip():
    op = encode_op(Command.SEEK_TO_BLOCK, 3, 200)
    assert decode_header(encode_packet(op, bytes(BLOCK_SIZE))[:HEADER_LEN]) == (
        op,
        INFO_HAS_BLOCK,
    )


def test_decode_header_rejects_wrong_length():
    with pytest.raises(ValueError):
        decode_header(b"\x00\x00")


def test_response_ok_reflects_low_bit():
    assert Response(0, 0).ok
    assert not Response(0, 1).ok


def test_operation_without_block(pair):
    client_end, server_end = pair
    op = encode_op(Command.MOUNT, 0, 0)
    server_end.sendall(encode_packet(op))
    response = JbodClient(client_end).operation(op)
    assert response == Response(op, 0, None)
    assert _recv_all(server_end, HEADER_LEN) == encode_packet(op)


def test_operation_receives_block(pair):
    client_end, server_end = pair
    op = encode_op(Command.READ_BLOCK, 0, 0)
    block = bytes([0xAB]) * BLOCK_SIZE
    server_end.sendall(encode_packet(op, block))
    response = JbodClient(client_end).operation(op)
    assert response.ok
    assert response.block == block


def test_operation_sends_block(pair):
    client_end, server_end = pair
    op = encode_op(Command.WRITE_BLOCK, 0, 0)
    block = bytes([0x11]) * BLOCK_SIZE
    server_end.sendall(encode_packet(op))
    JbodClient(client_end).operation(op, block)
    assert _recv_all(server_end, HEADER_LEN + BLOCK_SIZE) == encode_packet(op, block)


def test_operation_reports_failure(pair):
    client_end, server_end = pair
    op = encode_op(Command.UNMOUNT, 0, 0)
    server_end.sendall(op.to_bytes(4, "big") + b"\x01")
    response = JbodClient(client_end).operation(op)
    assert not response.ok
    assert response.block is None


def test_operation_on_closed_connection_raises(pair):
    client_end, server_end = pair
    server_end.shutdown(socket.SHUT_WR)
    with pytest.raises(NetError):
        JbodClient(client_end).operation(encode_op(Command.MOUNT, 0, 0))


def test_operation_without_connection_raises():
    with pytest.raises(NetError):
        JbodClient().operation(0)


def test_connect_rejects_bad_address():
    client = JbodClient()
    with pytest.raises(NetError):
        client.connect("not-an-ip", 3333)
    assert not client.connected


def test_connect_refused_raises():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(NetError):
        JbodClient().connect("127.0.0.1", port)


def test_connect_and_disconnect_with_context_manager():
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]
    try:
        with JbodClient() as client:
            client.connect("127.0.0.1", port)
            conn, _ = server.accept()
            with conn:
                op = encode_op(Command.MOUNT, 0, 0)
                conn.sendall(encode_packet(op))
                assert client.operation(op).op == op
                assert client.connected
        assert not client.connected
    finally:
        server.close()


def test_connect_twice_raises():
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]
    try:
        with JbodClient() as client:
            client.connect("127.0.0.1", port)
            with pytest.raises(NetError):
                client.connect("127.0.0.1", port)
    finally:
        server.close()
"""Client side of the JBOD network protocol."""

from __future__ import annotations

import ipaddress
import socket
import struct
from dataclasses import dataclass
from types import TracebackType

from .jbod import BLOCK_SIZE

HEADER_LEN = 5
JBOD_SERVER = "127.0.0.1"
JBOD_PORT = 3333

INFO_FAILED = 0x01
INFO_HAS_BLOCK = 0x02

_HEADER = struct.Struct(">IB")


class NetError(Exception):
    """Raised when talking to the JBOD server fails."""


@dataclass(frozen=True)
class Response:
    """A reply from the server: the opcode, the info code and any block."""

    op: int
    ret: int
    block: bytes | None = None

    @property
    def ok(self) -> bool:
        return not self.ret & INFO_FAILED


def encode_packet(op: int, block: bytes | None = None) -> bytes:
    """Build a request packet: big-endian opcode, info code, optional block."""
    if not 0 <= op <= 0xFFFFFFFF:
        raise ValueError(f"opcode out of range: {op}")
    if block is None:
        return _HEADER.pack(op, 0)
    data = bytes(block)
    if len(data) != BLOCK_SIZE:
        raise ValueError(f"block must be {BLOCK_SIZE} bytes, got {len(data)}")
    return _HEADER.pack(op, INFO_HAS_BLOCK) + data


def decode_header(header: bytes) -> tuple[int, int]:
    """Split a packet header into its opcode and info code."""
    if len(header) != HEADER_LEN:
        raise ValueError(f"header must be {HEADER_LEN} bytes, got {len(header)}")
    op, ret = _HEADER.unpack(bytes(header))
    return op, ret


class JbodClient:
    """A connection to a JBOD server that forwards device operations."""

    def __init__(self, sock: socket.socket | None = None) -> None:
        self._sock = sock

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self, ip: str = JBOD_SERVER, port: int = JBOD_PORT) -> None:
        """Open a TCP connection to the server at ip:port."""
        if self._sock is not None:
            raise NetError("already connected")
        try:
            ipaddress.IPv4Address(ip)
        except ValueError as exc:
            raise NetError(f"not an IPv4 address: {ip!r}") from exc
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.connect((ip, port))
        except OSError as exc:
            sock.close()
            raise NetError(f"cannot connect to {ip}:{port}: {exc}") from exc
        self._sock = sock

    def disconnect(self) -> None:
        """Close the connection, if any."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> JbodClient:
        return self

    def __exit__(
        self,
        *args: type[BaseException] | BaseException | TracebackType | None,
    ) -> None:
        self.disconnect()

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise NetError("not connected")
        return self._sock

    def _recv_exact(self, size: int) -> bytes:
        sock = self._socket()
        chunks = bytearray()
        while len(chunks) < size:
            try:
                chunk = sock.recv(size - len(chunks))
            except OSError as exc:
                raise NetError(f"receive failed: {exc}") from exc
            if not chunk:
                raise NetError("connection closed by server")
            chunks += chunk
        return bytes(chunks)

    def operation(self, op: int, block: bytes | None = None) -> Response:
        """Send one operation and return the server's reply."""
        packet = encode_packet(op, block)
        try:
            self._socket().sendall(packet)
        except OSError as exc:
            raise NetError(f"send failed: {exc}") from exc
        reply_op, ret = decode_header(self._recv_exact(HEADER_LEN))
        payload = self._recv_exact(BLOCK_SIZE) if ret >> 1 else None
        return Response(reply_op, ret, payload)
"""A linear device that spans all JBOD disks as one address space."""

from __future__ import annotations

from typing import Protocol

from .cache import Cache
from .jbod import BLOCK_SIZE, DISK_SIZE, NUM_BLOCKS_PER_DISK, TOTAL_SIZE, Command, encode_op
from .net import Response

MAX_IO_SIZE = 1024


class MdadmError(Exception):
    """Raised when a linear-device operation is refused."""


class Operator(Protocol):
    def operation(self, op: int, block: bytes | None = None) -> Response: ...


def _locate(addr: int) -> tuple[int, int, int]:
    return addr // DISK_SIZE, (addr // BLOCK_SIZE) % NUM_BLOCKS_PER_DISK, addr % BLOCK_SIZE


class Mdadm:
    """Reads and writes byte ranges of the linear device through a JBOD client."""

    def __init__(self, client: Operator, cache: Cache | None = None) -> None:
        self.client = client
        self.cache = cache
        self.mounted = False
        self.writable: bool | None = None

    def _op(self, cmd: Command, disk_num: int = 0, block_num: int = 0,
            block: bytes | None = None) -> Response:
        return self.client.operation(encode_op(cmd, disk_num, block_num), block)

    def _cache_on(self) -> bool:
        return self.cache is not None and self.cache.enabled()

    def mount(self) -> None:
        if self.mounted:
            raise MdadmError("device is already mounted")
        self._op(Command.MOUNT)
        self.mounted = True

    def unmount(self) -> None:
        if not self.mounted:
            raise MdadmError("device is not mounted")
        self._op(Command.UNMOUNT)
        self.mounted = False

    def write_permission(self) -> None:
        """Grant write permission unless it is already granted."""
        if self.writable is not True:
            self._op(Command.WRITE_PERMISSION)
            self.writable = True

    def revoke_write_permission(self) -> None:
        """Revoke write permission unless it is already revoked."""
        if self.writable is not False:
            self._op(Command.REVOKE_WRITE_PERMISSION)
            self.writable = False

    def _seek(self, disk_num: int, block_num: int) -> None:
        self._op(Command.SEEK_TO_DISK, disk_num, 0)
        self._op(Command.SEEK_TO_BLOCK, 0, block_num)

    def _fetch(self, disk_num: int, block_num: int) -> bytes:
        self._seek(disk_num, block_num)
        response = self._op(Command.READ_BLOCK)
        if response.block is None:
            raise MdadmError(f"cannot read block {block_num} of disk {disk_num}")
        return response.block

    def _read_block(self, disk_num: int, block_num: int) -> bytes:
        if self._cache_on():
            cached = self.cache.lookup(disk_num, block_num)
            if cached is not None:
                return cached
        data = self._fetch(disk_num, block_num)
        if self._cache_on():
            self.cache.insert(disk_num, block_num, data)
        return data

    def _check_io(self, start_addr: int, length: int) -> None:
        if start_addr < 0 or length < 0:
            raise MdadmError("address and length must not be negative")
        if length > MAX_IO_SIZE:
            raise MdadmError(f"at most {MAX_IO_SIZE} bytes per operation")
        if not self.mounted:
            raise MdadmError("device is not mounted")

    def read(self, start_addr: int, read_len: int) -> bytes:
        """Return read_len bytes starting at start_addr."""
        self._check_io(start_addr, read_len)
        end = start_addr + read_len
        if end >= TOTAL_SIZE:
            raise MdadmError("read runs past the end of the device")
        out = bytearray()
        addr = start_addr
        while addr < end:
            disk_num, block_num, offset = _locate(addr)
            chunk = min(BLOCK_SIZE - offset, end - addr)
            out += self._read_block(disk_num, block_num)[offset:offset + chunk]
            addr += chunk
        return bytes(out)

    def write(self, start_addr: int, data: bytes) -> int:
        """Write data starting at start_addr; return the number of bytes written."""
        payload = bytes(data)
        self._check_io(start_addr, len(payload))
        end = start_addr + len(payload)
        if end > TOTAL_SIZE:
            raise MdadmError("write runs past the end of the device")
        addr = start_addr
        while addr < end:
            disk_num, block_num, offset = _locate(addr)
            chunk = min(BLOCK_SIZE - offset, end - addr)
            current = bytearray(self._fetch(disk_num, block_num))
            done = addr - start_addr
            current[offset:offset + chunk] = payload[done:done + chunk]
            block = bytes(current)
            self._seek(disk_num, block_num)
            response = self._op(Command.WRITE_BLOCK, block=block)
            if response.ok and self._cache_on():
                self.cache.update(disk_num, block_num, block)
            addr += chunk
        return len(payload)
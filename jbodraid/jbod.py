"""Geometry, commands and error codes of the JBOD storage system."""

from __future__ import annotations

from enum import IntEnum

NUM_DISKS = 16
DISK_SIZE = 65536
BLOCK_SIZE = 256
NUM_BLOCKS_PER_DISK = 256
TOTAL_SIZE = NUM_DISKS * NUM_BLOCKS_PER_DISK * BLOCK_SIZE

_CMD_BITS = 6
_DISK_SHIFT = 6
_DISK_MASK = 0xF
_BLOCK_SHIFT = 10
_BLOCK_MASK = 0xFF


class Command(IntEnum):
    """Operations understood by a JBOD device."""

    MOUNT = 0
    UNMOUNT = 1
    SEEK_TO_DISK = 2
    SEEK_TO_BLOCK = 3
    READ_BLOCK = 4
    WRITE_PERMISSION = 5
    REVOKE_WRITE_PERMISSION = 6
    WRITE_BLOCK = 7
    SIGN_BLOCK = 8


NUM_CMDS = len(Command)


class JbodError(IntEnum):
    """Error codes reported by a JBOD device."""

    NO_ERROR = 0
    UNMOUNTED = 1
    ALREADY_MOUNTED = 2
    ALREADY_UNMOUNTED = 3
    CACHELOAD_FAIL = 4
    CACHEWRITE_FAIL = 5
    BAD_CMD = 6
    BAD_DISK_NUM = 7
    BAD_BLOCK_NUM = 8
    BAD_READ = 9
    BAD_WRITE = 10
    WRITE_PERMISSION_ALREADY_GRANTED = 11
    WRITE_PERMISSION_ALREADY_REVOKED = 12


def encode_op(cmd: int, disk_num: int, block_num: int) -> int:
    """Pack a command, disk number and block number into a 32-bit opcode."""
    command = Command(cmd)
    if not 0 <= disk_num < NUM_DISKS:
        raise ValueError(f"disk number out of range: {disk_num}")
    if not 0 <= block_num < NUM_BLOCKS_PER_DISK:
        raise ValueError(f"block number out of range: {block_num}")
    return int(command) | (disk_num << _DISK_SHIFT) | (block_num << _BLOCK_SHIFT)


def decode_op(op: int) -> tuple[Command, int, int]:
    """Split an opcode into its command, disk number and block number."""
    command = Command(op & ((1 << _CMD_BITS) - 1))
    disk_num = (op >> _DISK_SHIFT) & _DISK_MASK
    block_num = (op >> _BLOCK_SHIFT) & _BLOCK_MASK
    return command, disk_num, block_num
"""Workload runner that drives the linear device over a JBOD connection."""

from __future__ import annotations

import getopt
import os
import re
import sys
from typing import TextIO, Union

from .cache import Cache, CacheError
from .jbod import NUM_BLOCKS_PER_DISK, NUM_DISKS, Command, encode_op, BLOCK_SIZE
from .mdadm import MAX_IO_SIZE, Mdadm, MdadmError, Operator
from .net import JBOD_PORT, JBOD_SERVER, JbodClient, NetError

USAGE = (
    "USAGE: test [-h] [-w workload-file] [-s cache_size] \n"
    "\n"
    "where:\n"
    "    -h - help mode (display this message)\n"
    "\n"
)

# Keywords are matched as prefixes, in this order.
_KEYWORDS = ("MOUNT", "UNMOUNT", "WRITE_PERMIT", "WRITE_PERMIT_REVOKE", "SIGNALL")

_WORD = re.compile(r"\s*(\S{1,7})")
_NUMBERS = {width: re.compile(rf"\s*(\d{{1,{width}}})") for width in (7, 4, 3)}
_ATOI = re.compile(r"\s*([+-]?\d+)")

Instruction = Union[tuple[str], tuple[str, int, int], tuple[str, int, int, int]]


class WorkloadError(Exception):
    """Raised when a workload cannot be read, parsed or set up."""


def _scan(line: str) -> tuple[str, int, int, int] | None:
    """Read a word and three unsigned numbers limited to 7, 4 and 3 digits."""
    match = _WORD.match(line)
    if match is None:
        return None
    word = match.group(1)
    pos = match.end()
    numbers = []
    for width in (7, 4, 3):
        match = _NUMBERS[width].match(line, pos)
        if match is None:
            return None
        numbers.append(int(match.group(1)))
        pos = match.end()
    return word, numbers[0], numbers[1], numbers[2]


def parse_line(line: str) -> Instruction:
    """Turn one workload line into an instruction tuple."""
    for keyword in _KEYWORDS:
        if line.startswith(keyword):
            return (keyword,)
    scanned = _scan(line)
    if scanned is None:
        raise WorkloadError(f"Failed to parse command: [{line}], aborting.")
    word, addr, length, ch = scanned
    if word.startswith("READ"):
        return ("READ", addr, length)
    if word.startswith("WRITE"):
        return ("WRITE", addr, length, ch)
    raise WorkloadError(f"Unknown command [{line}]")


def _sign_all(client: Operator, out: TextIO) -> None:
    for disk_num in range(NUM_DISKS):
        for block_num in range(NUM_BLOCKS_PER_DISK):
            response = client.operation(
                encode_op(Command.SIGN_BLOCK, disk_num, block_num), bytes(BLOCK_SIZE)
            )
            block = response.block or b""
            out.write(block.split(b"\0", 1)[0].decode("latin-1"))


def run_workload(
    workload: str | os.PathLike[str],
    cache_size: int,
    client: Operator,
    out: TextIO | None = None,
) -> Cache:
    """Run every line of a workload file; return the cache with its statistics."""
    stream = out if out is not None else sys.stdout
    try:
        handle = open(workload, encoding="utf-8")
    except OSError as exc:
        raise WorkloadError(f"Cannot open workload file {workload}: {exc}") from exc

    cache = Cache()
    with handle:
        if cache_size:
            try:
                cache.create(cache_size)
            except CacheError as exc:
                raise WorkloadError("Failed to create cache.") from exc
        device = Mdadm(client, cache)

        for line_num, raw in enumerate(handle, start=1):
            line = raw.rstrip("\n")
            try:
                instruction = parse_line(line)
            except WorkloadError as exc:
                if line.startswith(("READ", "WRITE")) or _scan(line) is None:
                    raise
                raise WorkloadError(
                    f"Unknown command [{line}] on line {line_num}, aborting."
                ) from exc
            name = instruction[0]
            try:
                if name == "MOUNT":
                    device.mount()
                elif name == "UNMOUNT":
                    device.unmount()
                elif name == "WRITE_PERMIT":
                    device.write_permission()
                elif name == "WRITE_PERMIT_REVOKE":
                    device.revoke_write_permission()
                elif name == "SIGNALL":
                    _sign_all(client, stream)
                elif name == "READ":
                    _, addr, length = instruction
                    device.read(addr, length)
                else:
                    _, addr, length, ch = instruction
                    device.write(addr, bytes([ch & 0xFF]) * length)
            except MdadmError:
                # A refused operation does not stop the workload.
                continue

        if cache_size:
            cache.destroy()

    cache.print_hit_rate(sys.stderr)
    return cache


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def main(argv: list[str] | None = None) -> int:
    """Parse options, connect to the server and run the workload."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, _ = getopt.gnu_getopt(args, "hw:s:")
    except getopt.GetoptError as exc:
        sys.stderr.write(f"Unknown command line option ({exc.opt}), aborting.\n")
        return -1

    cache_size = 0
    workload: str | None = None
    for opt, value in opts:
        if opt == "-h":
            sys.stderr.write(USAGE)
            return 0
        if opt == "-s":
            cache_size = _atoi(value)
        elif opt == "-w":
            workload = value

    if not workload:
        sys.stderr.write(USAGE)
        return -1

    client = JbodClient()
    try:
        client.connect(JBOD_SERVER, JBOD_PORT)
    except NetError:
        return -1

    with client:
        try:
            run_workload(workload, cache_size, client)
        except (WorkloadError, NetError) as exc:
            sys.stderr.write(f"{exc}\n")
            return 1
    return 0


__all__ = [
    "MAX_IO_SIZE",
    "USAGE",
    "WorkloadError",
    "main",
    "parse_line",
    "run_workload",
]


if __name__ == "__main__":
    sys.exit(main())
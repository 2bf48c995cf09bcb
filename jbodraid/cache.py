"""A fixed-size block cache with least-frequently-used eviction."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TextIO

from .jbod import BLOCK_SIZE, NUM_BLOCKS_PER_DISK, NUM_DISKS

MIN_ENTRIES = 2
MAX_ENTRIES = 4096


class CacheError(Exception):
    """Raised when a cache operation cannot be carried out."""


@dataclass
class CacheEntry:
    """One cached block; an entry with no accesses is empty."""

    valid: bool = True
    disk_num: int = 0
    block_num: int = 0
    block: bytes = field(default=bytes(BLOCK_SIZE))
    num_accesses: int = 0
    inserted: int = 0

    def holds(self, disk_num: int, block_num: int) -> bool:
        return (
            self.num_accesses > 0
            and self.disk_num == disk_num
            and self.block_num == block_num
        )


def _as_block(buf: bytes) -> bytes:
    data = bytes(buf)
    if len(data) != BLOCK_SIZE:
        raise ValueError(f"block must be {BLOCK_SIZE} bytes, got {len(data)}")
    return data


class Cache:
    """Block cache; evicts the least used entry, oldest first on ties."""

    def __init__(self) -> None:
        self._entries: list[CacheEntry] | None = None
        self.num_queries = 0
        self.num_hits = 0
        self._clock = 0

    @property
    def size(self) -> int:
        return len(self._entries) if self._entries is not None else 0

    @property
    def entries(self) -> list[CacheEntry]:
        if self._entries is None:
            raise CacheError("cache has not been created")
        return self._entries

    def create(self, num_entries: int) -> None:
        """Allocate room for num_entries blocks and reset the statistics."""
        if self._entries is not None:
            raise CacheError("cache already exists")
        if not MIN_ENTRIES <= num_entries <= MAX_ENTRIES:
            raise CacheError(
                f"cache size must be between {MIN_ENTRIES} and {MAX_ENTRIES}"
            )
        self._entries = [CacheEntry() for _ in range(num_entries)]
        self.num_queries = 0
        self.num_hits = 0
        self._clock = 0

    def destroy(self) -> None:
        """Drop the cache; the hit statistics are kept."""
        if self._entries is None:
            raise CacheError("cache does not exist")
        self._entries = None

    def _find(self, disk_num: int, block_num: int) -> CacheEntry | None:
        return next(
            (e for e in self.entries if e.holds(disk_num, block_num)), None
        )

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def lookup(self, disk_num: int, block_num: int) -> bytes | None:
        """Return the cached block, or None on a miss."""
        entries = self.entries
        if not entries:
            raise CacheError("cache is empty")
        self.num_queries += 1
        entry = self._find(disk_num, block_num)
        if entry is None:
            return None
        entry.num_accesses += 1
        self.num_hits += 1
        return entry.block

    def update(self, disk_num: int, block_num: int, buf: bytes) -> None:
        """Replace the contents of a cached block if it is present."""
        if self._entries is None:
            return
        entry = self._find(disk_num, block_num)
        if entry is None:
            return
        entry.block = _as_block(buf)
        entry.num_accesses += 1
        entry.inserted = self._tick()

    def _store(self, entry: CacheEntry, disk_num: int, block_num: int, data: bytes) -> None:
        entry.disk_num = disk_num
        entry.block_num = block_num
        entry.valid = True
        entry.block = data
        entry.num_accesses = 1
        entry.inserted = self._tick()

    def insert(self, disk_num: int, block_num: int, buf: bytes) -> None:
        """Add a block, evicting the least used (then oldest) entry when full."""
        entries = self.entries
        if not 0 <= disk_num <= NUM_DISKS or not 0 <= block_num <= NUM_BLOCKS_PER_DISK:
            raise CacheError(f"bad location: disk {disk_num}, block {block_num}")
        data = _as_block(buf)
        victim = entries[0]
        lowest = victim.num_accesses
        for entry in entries:
            if entry.holds(disk_num, block_num):
                raise CacheError(
                    f"block {block_num} of disk {disk_num} is already cached"
                )
            if entry.num_accesses == 0:
                self._store(entry, disk_num, block_num, data)
                return
            if entry.num_accesses < lowest or (
                entry.num_accesses == lowest and entry.inserted < victim.inserted
            ):
                victim = entry
                lowest = entry.num_accesses
        self._store(victim, disk_num, block_num, data)

    def enabled(self) -> bool:
        """True when the cache exists and holds more than two entries."""
        return self._entries is not None and len(self._entries) > 2

    def hit_rate(self) -> float:
        """Percentage of lookups that hit; NaN before any lookup."""
        if self.num_queries == 0:
            return float("nan")
        return 100 * self.num_hits / self.num_queries

    def print_hit_rate(self, stream: TextIO | None = None) -> None:
        out = stream if stream is not None else sys.stderr
        out.write(f"num_hits: {self.num_hits}, num_queries: {self.num_queries}\n")
        out.write(f"Hit rate: {self.hit_rate():5.1f}%\n")
"""Block devices and a small LRU cache of fixed-size disk blocks."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

BLOCK_SZ = 512
DEFAULT_CACHE_CAPACITY = 16


class BlockDevice(ABC):
    """A device addressed in blocks of ``BLOCK_SZ`` bytes."""

    @abstractmethod
    def read_block(self, block_id: int) -> bytes:
        """Return the contents of block ``block_id``."""

    @abstractmethod
    def write_block(self, block_id: int, data: bytes) -> None:
        """Store ``data`` (exactly one block) at ``block_id``."""


def _check_block(data: bytes) -> None:
    if len(data) != BLOCK_SZ:
        raise ValueError(f"block data must be {BLOCK_SZ} bytes, got {len(data)}")


class MemoryBlockDevice(BlockDevice):
    """A block device held entirely in memory."""

    def __init__(self, total_blocks: int) -> None:
        if total_blocks < 0:
            raise ValueError("total_blocks must not be negative")
        self.total_blocks = total_blocks
        self._storage = bytearray(total_blocks * BLOCK_SZ)

    def _span(self, block_id: int) -> slice:
        if not 0 <= block_id < self.total_blocks:
            raise ValueError(f"block {block_id} out of range 0..{self.total_blocks - 1}")
        start = block_id * BLOCK_SZ
        return slice(start, start + BLOCK_SZ)

    def read_block(self, block_id: int) -> bytes:
        return bytes(self._storage[self._span(block_id)])

    def write_block(self, block_id: int, data: bytes) -> None:
        _check_block(data)
        self._storage[self._span(block_id)] = data


class FileBlockDevice(BlockDevice):
    """A block device backed by an image file on the host."""

    def __init__(self, path: str | os.PathLike[str], truncate: bool = False) -> None:
        flags = os.O_RDWR | os.O_CREAT
        if truncate:
            flags |= os.O_TRUNC
        fd = os.open(path, flags, 0o666)
        self.path = path
        self._file = os.fdopen(fd, "r+b")

    def read_block(self, block_id: int) -> bytes:
        if block_id < 0:
            raise ValueError("block id must not be negative")
        self._file.seek(block_id * BLOCK_SZ)
        data = self._file.read(BLOCK_SZ)
        # Past the end of the image a block reads as zeros.
        return data.ljust(BLOCK_SZ, b"\0")

    def write_block(self, block_id: int, data: bytes) -> None:
        _check_block(data)
        if block_id < 0:
            raise ValueError("block id must not be negative")
        self._file.seek(block_id * BLOCK_SZ)
        if self._file.write(data) != BLOCK_SZ:
            raise OSError(f"short write to block {block_id}")

    def close(self) -> None:
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def __enter__(self) -> FileBlockDevice:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CacheExhaustedError(RuntimeError):
    """Every cache slot is in use and none can be recycled."""


class BlockCache:
    """One cached block: its bytes, where it came from and who holds it."""

    __slots__ = ("data", "block_id", "device", "modified", "ref")

    def __init__(self) -> None:
        self.data = bytearray(BLOCK_SZ)
        self.block_id = 0
        self.device: BlockDevice | None = None
        self.modified = False
        self.ref = 0

    def _load(self, block_id: int, device: BlockDevice) -> None:
        self.block_id = block_id
        self.device = device
        self.modified = False
        raw = device.read_block(block_id)
        self.data[:] = bytes(raw[:BLOCK_SZ]).ljust(BLOCK_SZ, b"\0")

    def sync(self) -> None:
        """Write the block back to its device if it has been modified."""
        if self.modified and self.device is not None:
            self.modified = False
            self.device.write_block(self.block_id, bytes(self.data))


class BlockCacheManager:
    """A fixed number of block slots recycled in least-recently-used order."""

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        # Front of the list is the most recently released slot.
        self._slots = [BlockCache() for _ in range(capacity)]

    def get(self, block_id: int, device: BlockDevice) -> BlockCache:
        """Return the slot holding ``block_id`` of ``device``, taking a reference."""
        for slot in self._slots:
            if slot.block_id == block_id and slot.device is device:
                slot.ref += 1
                return slot
        for slot in reversed(self._slots):
            if slot.ref == 0:
                slot.sync()
                slot._load(block_id, device)
                slot.ref = 1
                return slot
        raise CacheExhaustedError("run out of block cache slots")

    def release(self, block: BlockCache) -> None:
        """Drop one reference; an unreferenced slot becomes most recently used."""
        if block.ref <= 0:
            raise ValueError(f"block {block.block_id} is not referenced")
        block.ref -= 1
        if block.ref == 0:
            self._slots.remove(block)
            self._slots.insert(0, block)

    @contextmanager
    def borrow(
        self, block_id: int, device: BlockDevice, modify: bool = False
    ) -> Iterator[BlockCache]:
        """Hold a block for the length of a ``with`` statement."""
        block = self.get(block_id, device)
        if modify:
            block.modified = True
        try:
            yield block
        finally:
            self.release(block)

    def sync_all(self) -> None:
        """Write every modified block back to its device."""
        for slot in self._slots:
            slot.sync()
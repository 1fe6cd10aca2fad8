"""On-disk structures: the super block, disk inodes and directory entries."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable

from .block_cache import BLOCK_SZ, BlockCacheManager, BlockDevice

EFS_MAGIC = 0x3B800001
INODE_DIRECT_COUNT = 28
NAME_LENGTH_LIMIT = 27
INODE_INDIRECT1_COUNT = BLOCK_SZ // 4
INODE_INDIRECT2_COUNT = INODE_INDIRECT1_COUNT * INODE_INDIRECT1_COUNT
DIRECT_BOUND = INODE_DIRECT_COUNT
INDIRECT1_BOUND = DIRECT_BOUND + INODE_INDIRECT1_COUNT
INDIRECT2_BOUND = INDIRECT1_BOUND + INODE_INDIRECT2_COUNT
DIRENT_SZ = 32

_SUPER_BLOCK = struct.Struct("<6I")
_DISK_INODE = struct.Struct(f"<I{INODE_DIRECT_COUNT}III I".replace(" ", ""))
_DIR_ENTRY = struct.Struct(f"<{NAME_LENGTH_LIMIT + 1}sI")
_INDIRECT = struct.Struct(f"<{INODE_INDIRECT1_COUNT}I")

DISK_INODE_SIZE = _DISK_INODE.size


class InodeType(IntEnum):
    """Kind of object a disk inode describes."""

    FILE = 0
    DIRECTORY = 1


def _data_blocks(size: int) -> int:
    return (size + BLOCK_SZ - 1) // BLOCK_SZ


def total_blocks(size: int) -> int:
    """Blocks needed for ``size`` bytes, counting indirect index blocks."""
    data_blocks = _data_blocks(size)
    total = data_blocks
    if data_blocks > INODE_DIRECT_COUNT:
        total += 1
    if data_blocks > INDIRECT1_BOUND:
        total += 1
        total += (
            data_blocks - INDIRECT1_BOUND + INODE_INDIRECT1_COUNT - 1
        ) // INODE_INDIRECT1_COUNT
    return total


def _get_u32(data: bytearray, index: int) -> int:
    start = index * 4
    return int.from_bytes(data[start:start + 4], "little")


def _set_u32(data: bytearray, index: int, value: int) -> None:
    start = index * 4
    data[start:start + 4] = value.to_bytes(4, "little")


def _u32s(data: bytearray) -> tuple[int, ...]:
    return _INDIRECT.unpack(bytes(data))


@dataclass
class SuperBlock:
    """Block 0: the magic number and the sizes of every area."""

    total_blocks: int
    inode_bitmap_blocks: int
    inode_area_blocks: int
    data_bitmap_blocks: int
    data_area_blocks: int
    magic: int = EFS_MAGIC

    def is_valid(self) -> bool:
        return self.magic == EFS_MAGIC

    def pack(self) -> bytes:
        return _SUPER_BLOCK.pack(
            self.magic,
            self.total_blocks,
            self.inode_bitmap_blocks,
            self.inode_area_blocks,
            self.data_bitmap_blocks,
            self.data_area_blocks,
        )

    @classmethod
    def unpack(cls, data: bytes) -> SuperBlock:
        (magic, total, inode_bitmap, inode_area, data_bitmap, data_area) = (
            _SUPER_BLOCK.unpack_from(bytes(data))
        )
        return cls(total, inode_bitmap, inode_area, data_bitmap, data_area, magic)


@dataclass
class DiskInode:
    """An inode as stored in the inode area, with direct and indirect blocks."""

    size: int = 0
    direct: list[int] = field(default_factory=lambda: [0] * INODE_DIRECT_COUNT)
    indirect1: int = 0
    indirect2: int = 0
    type_: int = InodeType.FILE

    @classmethod
    def new(cls, inode_type: InodeType) -> DiskInode:
        """An empty inode of the given type; indirect blocks come later."""
        return cls(type_=int(inode_type))

    def is_dir(self) -> bool:
        return self.type_ == InodeType.DIRECTORY

    def is_file(self) -> bool:
        return self.type_ == InodeType.FILE

    def data_blocks(self) -> int:
        """Number of data blocks covering the current size."""
        return _data_blocks(self.size)

    def blocks_num_needed(self, new_size: int) -> int:
        """Extra blocks, index blocks included, to grow to ``new_size``."""
        if new_size <= self.size:
            raise ValueError(f"new size {new_size} is not above current size {self.size}")
        return total_blocks(new_size) - total_blocks(self.size)

    def get_block_id(
        self, inner_id: int, cache: BlockCacheManager, device: BlockDevice
    ) -> int:
        """Device block holding the ``inner_id``-th data block of the inode."""
        if not 0 <= inner_id < INDIRECT2_BOUND:
            raise ValueError(f"inner block {inner_id} out of range")
        if inner_id < INODE_DIRECT_COUNT:
            return self.direct[inner_id]
        if inner_id < INDIRECT1_BOUND:
            with cache.borrow(self.indirect1, device) as bc:
                return _get_u32(bc.data, inner_id - INODE_DIRECT_COUNT)
        outer, inner = divmod(inner_id - INDIRECT1_BOUND, INODE_INDIRECT1_COUNT)
        with cache.borrow(self.indirect2, device) as bc:
            table = _get_u32(bc.data, outer)
        with cache.borrow(table, device) as bc:
            return _get_u32(bc.data, inner)

    def increase_size(
        self,
        new_size: int,
        new_blocks: Iterable[int],
        cache: BlockCacheManager,
        device: BlockDevice,
    ) -> None:
        """Grow to ``new_size``, placing the given blocks as data and index blocks."""
        if new_size < self.size:
            raise ValueError(f"new size {new_size} is below current size {self.size}")
        if _data_blocks(new_size) > INDIRECT2_BOUND:
            raise ValueError(f"size {new_size} exceeds the largest inode")
        blocks = list(new_blocks)
        needed = total_blocks(new_size) - total_blocks(self.size)
        if len(blocks) < needed:
            raise ValueError(f"{needed} blocks needed, {len(blocks)} given")
        supply = iter(blocks)

        current = self.data_blocks()
        self.size = new_size
        total = self.data_blocks()

        while current < min(total, INODE_DIRECT_COUNT):
            self.direct[current] = next(supply)
            current += 1

        if total <= INODE_DIRECT_COUNT:
            return
        if current == INODE_DIRECT_COUNT:
            self.indirect1 = next(supply)
        current -= INODE_DIRECT_COUNT
        total -= INODE_DIRECT_COUNT

        with cache.borrow(self.indirect1, device, modify=True) as bc:
            while current < min(total, INODE_INDIRECT1_COUNT):
                _set_u32(bc.data, current, next(supply))
                current += 1

        if total <= INODE_INDIRECT1_COUNT:
            return
        if current == INODE_INDIRECT1_COUNT:
            self.indirect2 = next(supply)
        current -= INODE_INDIRECT1_COUNT
        total -= INODE_INDIRECT1_COUNT

        a0, b0 = divmod(current, INODE_INDIRECT1_COUNT)
        a1, b1 = divmod(total, INODE_INDIRECT1_COUNT)
        with cache.borrow(self.indirect2, device, modify=True) as bc2:
            while (a0, b0) < (a1, b1):
                if b0 == 0:
                    _set_u32(bc2.data, a0, next(supply))
                with cache.borrow(_get_u32(bc2.data, a0), device, modify=True) as bc:
                    _set_u32(bc.data, b0, next(supply))
                b0 += 1
                if b0 == INODE_INDIRECT1_COUNT:
                    b0 = 0
                    a0 += 1

    def clear_size(self, cache: BlockCacheManager, device: BlockDevice) -> list[int]:
        """Shrink to zero and return every block, index blocks included, to free."""
        data_blocks = self.data_blocks()
        self.size = 0
        freed: list[int] = []

        count = min(data_blocks, INODE_DIRECT_COUNT)
        freed.extend(self.direct[:count])
        self.direct[:count] = [0] * count

        if data_blocks <= INODE_DIRECT_COUNT:
            return freed
        freed.append(self.indirect1)
        data_blocks -= INODE_DIRECT_COUNT

        with cache.borrow(self.indirect1, device, modify=True) as bc:
            freed.extend(_u32s(bc.data)[:min(data_blocks, INODE_INDIRECT1_COUNT)])
        self.indirect1 = 0

        if data_blocks <= INODE_INDIRECT1_COUNT:
            return freed
        freed.append(self.indirect2)
        data_blocks -= INODE_INDIRECT1_COUNT
        if data_blocks > INODE_INDIRECT2_COUNT:
            raise ValueError("inode is larger than its index can describe")

        full, rest = divmod(data_blocks, INODE_INDIRECT1_COUNT)
        with cache.borrow(self.indirect2, device, modify=True) as bc2:
            tables = _u32s(bc2.data)
        counts = [INODE_INDIRECT1_COUNT] * full + ([rest] if rest else [])
        for table, count in zip(tables, counts):
            freed.append(table)
            with cache.borrow(table, device, modify=True) as bc:
                freed.extend(_u32s(bc.data)[:count])
        self.indirect2 = 0
        return freed

    def read_at(
        self,
        offset: int,
        length: int,
        cache: BlockCacheManager,
        device: BlockDevice,
    ) -> bytes:
        """Read up to ``length`` bytes from ``offset``, stopping at the file size."""
        if offset < 0 or length < 0:
            raise ValueError("offset and length must not be negative")
        end = min(self.size, offset + length)
        out = bytearray()
        pos = offset
        while pos < end:
            inner_id, in_block = divmod(pos, BLOCK_SZ)
            chunk_end = min((inner_id + 1) * BLOCK_SZ, end)
            block_id = self.get_block_id(inner_id, cache, device)
            with cache.borrow(block_id, device) as bc:
                out += bc.data[in_block:in_block + chunk_end - pos]
            pos = chunk_end
        return bytes(out)

    def write_at(
        self,
        offset: int,
        data: bytes,
        cache: BlockCacheManager,
        device: BlockDevice,
    ) -> int:
        """Write ``data`` at ``offset`` within the current size; return bytes written."""
        if offset < 0:
            raise ValueError("offset must not be negative")
        end = min(self.size, offset + len(data))
        if offset > end:
            raise ValueError(f"offset {offset} is beyond the file size {self.size}")
        pos = offset
        while pos < end:
            inner_id, in_block = divmod(pos, BLOCK_SZ)
            chunk_end = min((inner_id + 1) * BLOCK_SZ, end)
            block_id = self.get_block_id(inner_id, cache, device)
            with cache.borrow(block_id, device, modify=True) as bc:
                bc.data[in_block:in_block + chunk_end - pos] = data[
                    pos - offset:chunk_end - offset
                ]
            pos = chunk_end
        return end - offset

    def pack(self) -> bytes:
        return _DISK_INODE.pack(
            self.size, *self.direct, self.indirect1, self.indirect2, self.type_
        )

    @classmethod
    def unpack(cls, data: bytes) -> DiskInode:
        fields = _DISK_INODE.unpack_from(bytes(data))
        return cls(
            size=fields[0],
            direct=list(fields[1:1 + INODE_DIRECT_COUNT]),
            indirect1=fields[1 + INODE_DIRECT_COUNT],
            indirect2=fields[2 + INODE_DIRECT_COUNT],
            type_=fields[3 + INODE_DIRECT_COUNT],
        )


@dataclass
class DirEntry:
    """A name and inode number as stored in a directory."""

    name: str = ""
    inode_number: int = 0

    def pack(self) -> bytes:
        raw = self.name.encode("utf-8", "surrogateescape")[:NAME_LENGTH_LIMIT + 1]
        return _DIR_ENTRY.pack(raw, self.inode_number)

    @classmethod
    def unpack(cls, data: bytes) -> DirEntry:
        raw, inode_number = _DIR_ENTRY.unpack_from(bytes(data))
        name = raw.split(b"\0", 1)[0].decode("utf-8", "surrogateescape")
        return cls(name, inode_number)
"""The easy file system: area layout, allocation and inode operations."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .bitmap import BLOCK_BITS, Bitmap, BitmapFullError
from .block_cache import BLOCK_SZ, BlockCacheManager, BlockDevice
from .layout import (
    DIRENT_SZ,
    DISK_INODE_SIZE,
    NAME_LENGTH_LIMIT,
    DirEntry,
    DiskInode,
    InodeType,
    SuperBlock,
)

_ZERO_BLOCK = bytes(BLOCK_SZ)
_INODES_PER_BLOCK = BLOCK_SZ // DISK_INODE_SIZE


class InvalidFileSystemError(ValueError):
    """The device does not hold a file system this module understands."""


@dataclass(eq=False)
class EasyFileSystem:
    """A mounted file system: its device, cache, bitmaps and area offsets."""

    device: BlockDevice
    cache: BlockCacheManager
    inode_bitmap: Bitmap
    data_bitmap: Bitmap
    inode_area_start_block: int
    data_area_start_block: int
    data_area_blocks: int

    @classmethod
    def create(
        cls,
        device: BlockDevice,
        total_blocks: int,
        inode_bitmap_blocks: int = 1,
        cache: BlockCacheManager | None = None,
    ) -> EasyFileSystem:
        """Format ``device`` and return the new file system with an empty root."""
        if cache is None:
            cache = BlockCacheManager()
        if inode_bitmap_blocks < 1:
            raise ValueError("at least one inode bitmap block is required")
        inode_bitmap = Bitmap(1, inode_bitmap_blocks)
        inode_area_blocks = -(-inode_bitmap.maximum() * DISK_INODE_SIZE // BLOCK_SZ)
        inode_total_blocks = inode_bitmap_blocks + inode_area_blocks
        data_total_blocks = total_blocks - 1 - inode_total_blocks
        data_bitmap_blocks = (data_total_blocks + BLOCK_BITS) // (BLOCK_BITS + 1)
        data_area_blocks = data_total_blocks - data_bitmap_blocks
        if data_area_blocks < 1:
            raise ValueError(
                f"{total_blocks} blocks leave no room for data "
                f"with {inode_bitmap_blocks} inode bitmap blocks"
            )
        data_bitmap = Bitmap(1 + inode_total_blocks, data_bitmap_blocks)

        for block_id in range(total_blocks):
            with cache.borrow(block_id, device, modify=True) as bc:
                bc.data[:] = _ZERO_BLOCK

        super_block = SuperBlock(
            total_blocks,
            inode_bitmap_blocks,
            inode_area_blocks,
            data_bitmap_blocks,
            data_area_blocks,
        )
        packed = super_block.pack()
        with cache.borrow(0, device, modify=True) as bc:
            bc.data[: len(packed)] = packed

        fs = cls(
            device=device,
            cache=cache,
            inode_bitmap=inode_bitmap,
            data_bitmap=data_bitmap,
            inode_area_start_block=1 + inode_bitmap_blocks,
            data_area_start_block=1 + inode_total_blocks + data_bitmap_blocks,
            data_area_blocks=data_area_blocks,
        )
        root_id = fs.alloc_inode()
        if root_id != 0:
            raise RuntimeError(f"root inode allocated as {root_id}, expected 0")
        block_id, offset = fs.disk_inode_position(root_id)
        with cache.borrow(block_id, device, modify=True) as bc:
            bc.data[offset:offset + DISK_INODE_SIZE] = DiskInode.new(
                InodeType.DIRECTORY
            ).pack()
        cache.sync_all()
        return fs

    @classmethod
    def open(
        cls, device: BlockDevice, cache: BlockCacheManager | None = None
    ) -> EasyFileSystem:
        """Mount an existing file system by reading its super block."""
        if cache is None:
            cache = BlockCacheManager()
        with cache.borrow(0, device) as bc:
            super_block = SuperBlock.unpack(bc.data)
        if not super_block.is_valid():
            raise InvalidFileSystemError(
                f"bad magic number {super_block.magic:#x} in super block"
            )
        inode_total_blocks = (
            super_block.inode_bitmap_blocks + super_block.inode_area_blocks
        )
        return cls(
            device=device,
            cache=cache,
            inode_bitmap=Bitmap(1, super_block.inode_bitmap_blocks),
            data_bitmap=Bitmap(1 + inode_total_blocks, super_block.data_bitmap_blocks),
            inode_area_start_block=1 + super_block.inode_bitmap_blocks,
            data_area_start_block=1
            + inode_total_blocks
            + super_block.data_bitmap_blocks,
            data_area_blocks=super_block.data_area_blocks,
        )

    def root_inode(self) -> Inode:
        """The inode of the root directory."""
        block_id, offset = self.disk_inode_position(0)
        return Inode(block_id, offset, self)

    def disk_inode_position(self, inode_id: int) -> tuple[int, int]:
        """Block id and byte offset of the disk inode numbered ``inode_id``."""
        block, index = divmod(inode_id, _INODES_PER_BLOCK)
        return self.inode_area_start_block + block, index * DISK_INODE_SIZE

    def data_block_id(self, data_block_id: int) -> int:
        """Device block id of the ``data_block_id``-th block of the data area."""
        return self.data_area_start_block + data_block_id

    def alloc_inode(self) -> int:
        """Reserve a free inode number."""
        return self.inode_bitmap.alloc(self.cache, self.device)

    def alloc_data(self) -> int:
        """Reserve a free data block and return its device block id."""
        bit = self.data_bitmap.alloc(self.cache, self.device)
        if bit >= self.data_area_blocks:
            self.data_bitmap.dealloc(self.cache, self.device, bit)
            raise BitmapFullError("data area is full")
        return self.data_block_id(bit)

    def dealloc_data(self, block_id: int) -> None:
        """Zero a data block and return it to the free pool."""
        bit = block_id - self.data_area_start_block
        if not 0 <= bit < self.data_area_blocks:
            raise ValueError(f"block {block_id} is not in the data area")
        with self.cache.borrow(block_id, self.device, modify=True) as bc:
            bc.data[:] = _ZERO_BLOCK
        self.data_bitmap.dealloc(self.cache, self.device, bit)


@dataclass
class Inode:
    """A handle on a disk inode: where it lives and which file system owns it."""

    block_id: int
    block_offset: int
    fs: EasyFileSystem

    @contextmanager
    def _disk_inode(self, modify: bool = False) -> Iterator[DiskInode]:
        span = slice(self.block_offset, self.block_offset + DISK_INODE_SIZE)
        with self.fs.cache.borrow(self.block_id, self.fs.device, modify=modify) as bc:
            disk_inode = DiskInode.unpack(bc.data[span])
            yield disk_inode
            if modify:
                bc.data[span] = disk_inode.pack()

    def _entries(self, disk_inode: DiskInode) -> Iterator[DirEntry]:
        if not disk_inode.is_dir():
            raise NotADirectoryError("inode is not a directory")
        for index in range(disk_inode.size // DIRENT_SZ):
            raw = disk_inode.read_at(
                index * DIRENT_SZ, DIRENT_SZ, self.fs.cache, self.fs.device
            )
            if len(raw) != DIRENT_SZ:
                raise RuntimeError("short directory entry")
            yield DirEntry.unpack(raw)

    def _find_id(self, name: str, disk_inode: DiskInode) -> int | None:
        for entry in self._entries(disk_inode):
            if entry.name == name:
                return entry.inode_number
        return None

    def _inode_for(self, inode_id: int) -> Inode:
        block_id, offset = self.fs.disk_inode_position(inode_id)
        return Inode(block_id, offset, self.fs)

    def _increase_size(self, new_size: int, disk_inode: DiskInode) -> None:
        if new_size <= disk_inode.size:
            return
        needed = disk_inode.blocks_num_needed(new_size)
        blocks = [self.fs.alloc_data() for _ in range(needed)]
        disk_inode.increase_size(new_size, blocks, self.fs.cache, self.fs.device)

    def find(self, name: str) -> Inode:
        """The inode named ``name`` in this directory."""
        with self._disk_inode() as disk_inode:
            inode_id = self._find_id(name, disk_inode)
        if inode_id is None:
            raise FileNotFoundError(name)
        return self._inode_for(inode_id)

    def create(self, name: str) -> Inode:
        """Create an empty file named ``name`` in this directory."""
        if len(name.encode("utf-8", "surrogateescape")) > NAME_LENGTH_LIMIT:
            raise ValueError(f"name longer than {NAME_LENGTH_LIMIT} bytes: {name!r}")
        with self._disk_inode() as disk_inode:
            if self._find_id(name, disk_inode) is not None:
                raise FileExistsError(name)

        fs = self.fs
        new_id = fs.alloc_inode()
        new_inode = self._inode_for(new_id)
        span = slice(new_inode.block_offset, new_inode.block_offset + DISK_INODE_SIZE)
        with fs.cache.borrow(new_inode.block_id, fs.device, modify=True) as bc:
            bc.data[span] = DiskInode.new(InodeType.FILE).pack()

        with self._disk_inode(modify=True) as disk_inode:
            file_count = disk_inode.size // DIRENT_SZ
            self._increase_size((file_count + 1) * DIRENT_SZ, disk_inode)
            disk_inode.write_at(
                file_count * DIRENT_SZ,
                DirEntry(name, new_id).pack(),
                fs.cache,
                fs.device,
            )
        fs.cache.sync_all()
        return new_inode

    def ls(self) -> list[str]:
        """Names in this directory, in the order they were created."""
        with self._disk_inode() as disk_inode:
            return [entry.name for entry in self._entries(disk_inode)]

    def read_at(self, offset: int, length: int) -> bytes:
        """Read up to ``length`` bytes starting at ``offset``."""
        with self._disk_inode() as disk_inode:
            return disk_inode.read_at(offset, length, self.fs.cache, self.fs.device)

    def write_at(self, offset: int, data: bytes) -> int:
        """Write ``data`` at ``offset``, growing the file as needed."""
        data = bytes(data)
        with self._disk_inode(modify=True) as disk_inode:
            self._increase_size(offset + len(data), disk_inode)
            written = disk_inode.write_at(offset, data, self.fs.cache, self.fs.device)
        self.fs.cache.sync_all()
        return written

    def clear(self) -> None:
        """Truncate to zero length and free every block the inode used."""
        with self._disk_inode(modify=True) as disk_inode:
            freed = disk_inode.clear_size(self.fs.cache, self.fs.device)
            for block_id in freed:
                self.fs.dealloc_data(block_id)
        self.fs.cache.sync_all()
"""Allocation bitmaps stored in consecutive disk blocks."""

from __future__ import annotations

from .block_cache import BLOCK_SZ, BlockCacheManager, BlockDevice

BLOCK_BITS = BLOCK_SZ * 8
_WORD_BYTES = 8
_WORDS_PER_BLOCK = BLOCK_SZ // _WORD_BYTES
_FULL_WORD = (1 << 64) - 1


class BitmapFullError(RuntimeError):
    """No free bit is left in the bitmap."""


def _trailing_zeros(x: int) -> int:
    if x == 0:
        return 64
    return (x & -x).bit_length() - 1


def _word(data: bytearray, index: int) -> int:
    start = index * _WORD_BYTES
    return int.from_bytes(data[start:start + _WORD_BYTES], "little")


def _store_word(data: bytearray, index: int, value: int) -> None:
    start = index * _WORD_BYTES
    data[start:start + _WORD_BYTES] = value.to_bytes(_WORD_BYTES, "little")


class Bitmap:
    """A bitmap spanning ``blocks`` blocks starting at ``start_block_id``."""

    def __init__(self, start_block_id: int, blocks: int) -> None:
        self.start_block_id = start_block_id
        self.blocks = blocks

    def __repr__(self) -> str:
        return f"Bitmap(start_block_id={self.start_block_id}, blocks={self.blocks})"

    def alloc(self, cache: BlockCacheManager, device: BlockDevice) -> int:
        """Set the lowest clear bit and return its index."""
        for block in range(self.blocks):
            with cache.borrow(self.start_block_id + block, device, modify=True) as bc:
                for pos in range(_WORDS_PER_BLOCK):
                    word = _word(bc.data, pos)
                    if word != _FULL_WORD:
                        inner = _trailing_zeros(~word & _FULL_WORD)
                        _store_word(bc.data, pos, word | (1 << inner))
                        return block * BLOCK_BITS + pos * 64 + inner
        raise BitmapFullError("bitmap has no free bit")

    def dealloc(self, cache: BlockCacheManager, device: BlockDevice, bit: int) -> None:
        """Clear ``bit``, which must currently be set."""
        if not 0 <= bit < self.maximum():
            raise ValueError(f"bit {bit} outside bitmap of {self.maximum()} bits")
        block, rest = divmod(bit, BLOCK_BITS)
        pos, inner = divmod(rest, 64)
        with cache.borrow(self.start_block_id + block, device, modify=True) as bc:
            word = _word(bc.data, pos)
            if not word & (1 << inner):
                raise ValueError(f"bit {bit} is not allocated")
            _store_word(bc.data, pos, word & ~(1 << inner))

    def maximum(self) -> int:
        """Number of bits the bitmap can hold."""
        return self.blocks * BLOCK_BITS
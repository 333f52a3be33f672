"""Fixed pool of in-memory block buffers with LRU replacement."""

from dataclasses import dataclass

from .constants import (
    BLOCK_ALLOCATION_MAP_SIZE,
    BLOCK_SIZE,
    BUFFER_CAPACITY,
    DISK_BLOCKS,
    INVALID_BLOCKNUM,
    BlockType,
)
from .errors import DiskFullError, InvalidBlockError, OutOfBoundError


@dataclass
class BufferMetaInfo:
    """Bookkeeping for one buffer slot."""

    free: bool = True
    dirty: bool = False
    block_num: int = -1
    timestamp: int = -1


class StaticBuffer:
    """Caches disk blocks and the block allocation map of a disk."""

    def __init__(self, disk):
        self.disk = disk
        self._blocks = [bytearray(BLOCK_SIZE) for _ in range(BUFFER_CAPACITY)]
        self.metainfo = [BufferMetaInfo() for _ in range(BUFFER_CAPACITY)]
        self.block_alloc_map = bytearray(DISK_BLOCKS)
        self.reload()

    def reload(self):
        """Read the allocation map from disk and empty every buffer."""
        self.block_alloc_map[:] = b"".join(
            self.disk.read_block(i) for i in range(BLOCK_ALLOCATION_MAP_SIZE)
        )
        self.metainfo[:] = [BufferMetaInfo() for _ in range(BUFFER_CAPACITY)]

    @staticmethod
    def _check_block(block_num):
        if not 0 <= block_num < DISK_BLOCKS:
            raise OutOfBoundError(f"block {block_num} is outside the disk")

    def get_block_type(self, block_num):
        """Return the type recorded for a block in the allocation map."""
        self._check_block(block_num)
        value = self.block_alloc_map[block_num]
        try:
            return BlockType(value)
        except ValueError:
            raise InvalidBlockError(f"block {block_num} has unknown type {value}") from None

    def set_block_type(self, block_num, block_type):
        """Record a block's type in the allocation map."""
        self._check_block(block_num)
        self.block_alloc_map[block_num] = BlockType(block_type)

    def find_buffer(self, block_num):
        """Return the index of the buffer holding a block, or None."""
        self._check_block(block_num)
        return next(
            (
                index
                for index, meta in enumerate(self.metainfo)
                if not meta.free and meta.block_num == block_num
            ),
            None,
        )

    def allocate_buffer(self, block_num):
        """Claim a buffer for a block, evicting the least recently used one if needed."""
        self._check_block(block_num)
        for meta in self.metainfo:
            if not meta.free:
                meta.timestamp += 1

        index = next((i for i, meta in enumerate(self.metainfo) if meta.free), None)
        if index is None:
            index = max(range(BUFFER_CAPACITY), key=lambda i: self.metainfo[i].timestamp)
            victim = self.metainfo[index]
            if victim.dirty:
                self.disk.write_block(victim.block_num, bytes(self._blocks[index]))

        self._blocks[index][:] = bytes(BLOCK_SIZE)
        self.metainfo[index] = BufferMetaInfo(
            free=False, dirty=False, block_num=block_num, timestamp=0
        )
        return index

    def load_block(self, block_num):
        """Return the buffer contents of a block, reading it from disk if needed.

        The returned bytearray is the buffer itself; changes made to it stay
        in memory until the block is marked dirty and written back.
        """
        index = self.find_buffer(block_num)
        if index is None:
            index = self.allocate_buffer(block_num)
            self._blocks[index][:] = self.disk.read_block(block_num)
        else:
            for meta in self.metainfo:
                meta.timestamp += 1
            self.metainfo[index].timestamp = 0
        return self._blocks[index]

    def mark_dirty(self, block_num):
        """Flag a buffered block as modified."""
        index = self.find_buffer(block_num)
        if index is None:
            raise InvalidBlockError(f"block {block_num} is not in the buffer")
        self.metainfo[index].dirty = True

    def find_free_block(self):
        """Return the lowest-numbered unused block."""
        index = self.block_alloc_map.find(bytes([BlockType.UNUSED]))
        if index == -1:
            raise DiskFullError()
        return index

    def release(self, block_num):
        """Mark a block unused and drop its buffer."""
        if block_num == INVALID_BLOCKNUM:
            return
        self._check_block(block_num)
        if self.block_alloc_map[block_num] == BlockType.UNUSED:
            return
        index = self.find_buffer(block_num)
        if index is not None:
            self.metainfo[index].free = True
        self.block_alloc_map[block_num] = BlockType.UNUSED

    def flush(self):
        """Write the allocation map and every dirty buffer to disk."""
        for i in range(BLOCK_ALLOCATION_MAP_SIZE):
            chunk = self.block_alloc_map[i * BLOCK_SIZE : (i + 1) * BLOCK_SIZE]
            self.disk.write_block(i, bytes(chunk))
        for meta, block in zip(self.metainfo, self._blocks):
            if not meta.free and meta.dirty:
                self.disk.write_block(meta.block_num, bytes(block))
                meta.dirty = False
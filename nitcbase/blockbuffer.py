"""Typed views onto buffered disk blocks: record blocks and B+ tree index blocks.

Attribute values are kept on disk as 16-byte fields that hold either a
little-endian double or a NUL-terminated string.  Records read from a block
come back as lists of these raw fields; ``decode_attr`` turns a field into a
Python value once its type is known, and ``encode_attr`` does the reverse.
"""

import struct
from dataclasses import dataclass, field

from .constants import (
    ATTR_SIZE,
    HEADER_SIZE,
    INVALID_BLOCKNUM,
    LEAF_ENTRY_SIZE,
    MAX_KEYS_INTERNAL,
    MAX_KEYS_LEAF,
    AttrType,
    BlockType,
)
from .errors import (
    AttrCountMismatchError,
    AttrTypeMismatchError,
    InvalidArgumentError,
    OutOfBoundError,
)

_HEADER = struct.Struct("<7i")
_NUMBER = struct.Struct("<d")
_INTERNAL = struct.Struct(f"<i{ATTR_SIZE}si")
_LEAF = struct.Struct(f"<{ATTR_SIZE}sii8x")
# Internal entries overlap: the right child of one key is the left child of the next.
_INTERNAL_STRIDE = 20
_EMPTY_ATTR = bytes(ATTR_SIZE)


def encode_attr(value):
    """Return the 16-byte on-disk form of a string, a number or an already encoded field."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ATTR_SIZE:
            raise InvalidArgumentError(
                f"an attribute field holds {ATTR_SIZE} bytes, got {len(value)}"
            )
        return bytes(value)
    if isinstance(value, str):
        raw = value.encode("latin-1")[: ATTR_SIZE - 1]
        return raw.ljust(ATTR_SIZE, b"\0")
    if isinstance(value, (int, float)):
        return _NUMBER.pack(float(value)).ljust(ATTR_SIZE, b"\0")
    raise InvalidArgumentError(f"cannot store a value of type {type(value).__name__}")


def decode_attr(value, attr_type):
    """Return a field as a float (NUMBER) or a str (STRING).

    Values that are already Python strings or numbers are checked against the
    type and passed through.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = encode_attr(value)
        if attr_type == AttrType.NUMBER:
            return _NUMBER.unpack_from(raw)[0]
        return raw.split(b"\0", 1)[0].decode("latin-1")
    if attr_type == AttrType.NUMBER:
        if isinstance(value, str):
            raise AttrTypeMismatchError()
        return float(value)
    if not isinstance(value, str):
        raise AttrTypeMismatchError()
    return value


def compare_attrs(first, second, attr_type):
    """Return -1, 0 or 1 as the first value sorts before, with or after the second."""
    a = decode_attr(first, attr_type)
    b = decode_attr(second, attr_type)
    return (a > b) - (a < b)


@dataclass
class HeadInfo:
    """The header at the start of every block."""

    block_type: int = BlockType.REC
    pblock: int = -1
    lblock: int = -1
    rblock: int = -1
    num_entries: int = 0
    num_attrs: int = 0
    num_slots: int = 0


@dataclass
class InternalEntry:
    """A key of an internal index node with its two children."""

    lchild: int = -1
    attr_val: bytes = field(default=_EMPTY_ATTR)
    rchild: int = -1


@dataclass
class LeafEntry:
    """A key of a leaf index node pointing at a record."""

    attr_val: bytes = field(default=_EMPTY_ATTR)
    block: int = -1
    slot: int = -1


def _unpack_header(data):
    return HeadInfo(*_HEADER.unpack_from(data))


class BlockBuffer:
    """A disk block seen through the buffer pool."""

    BLOCK_TYPE = BlockType.REC

    def __init__(self, buffer, block_num):
        self.buffer = buffer
        self.block_num = block_num

    @classmethod
    def allocate(cls, buffer):
        """Claim the lowest unused disk block and give it an empty header."""
        block_num = buffer.find_free_block()
        buffer.allocate_buffer(block_num)
        block = cls(buffer, block_num)
        block.write_header(HeadInfo(block_type=cls.BLOCK_TYPE))
        buffer.set_block_type(block_num, cls.BLOCK_TYPE)
        return block

    def _data(self):
        return self.buffer.load_block(self.block_num)

    def _mark_dirty(self):
        self.buffer.mark_dirty(self.block_num)

    def read_header(self):
        """Return the block header."""
        return _unpack_header(self._data())

    def write_header(self, head):
        """Overwrite the block header."""
        data = self._data()
        _HEADER.pack_into(
            data,
            0,
            head.block_type,
            head.pblock,
            head.lblock,
            head.rblock,
            head.num_entries,
            head.num_attrs,
            head.num_slots,
        )
        self._mark_dirty()

    def release(self):
        """Give the block back to the disk; this view no longer refers to a block."""
        self.buffer.release(self.block_num)
        self.block_num = INVALID_BLOCKNUM


class RecBuffer(BlockBuffer):
    """A block holding a slot map and fixed-size records."""

    BLOCK_TYPE = BlockType.REC

    def read_slot_map(self):
        """Return a mutable copy of the slot map."""
        data = self._data()
        head = _unpack_header(data)
        return bytearray(data[HEADER_SIZE : HEADER_SIZE + head.num_slots])

    def write_slot_map(self, slot_map):
        """Overwrite the slot map; it must have one byte per slot."""
        data = self._data()
        head = _unpack_header(data)
        if len(slot_map) != head.num_slots:
            raise InvalidArgumentError(
                f"slot map needs {head.num_slots} entries, got {len(slot_map)}"
            )
        data[HEADER_SIZE : HEADER_SIZE + head.num_slots] = bytes(slot_map)
        self._mark_dirty()

    @staticmethod
    def _record_start(head, slot):
        if not 0 <= slot < head.num_slots:
            raise OutOfBoundError(f"slot {slot} is outside the block")
        return HEADER_SIZE + head.num_slots + slot * head.num_attrs * ATTR_SIZE

    def read_record(self, slot):
        """Return the raw attribute fields of the record in a slot."""
        data = self._data()
        head = _unpack_header(data)
        start = self._record_start(head, slot)
        return [
            bytes(data[start + i * ATTR_SIZE : start + (i + 1) * ATTR_SIZE])
            for i in range(head.num_attrs)
        ]

    def write_record(self, record, slot):
        """Store a record in a slot; values may be strings, numbers or encoded fields."""
        data = self._data()
        head = _unpack_header(data)
        start = self._record_start(head, slot)
        encoded = [encode_attr(value) for value in record]
        if len(encoded) != head.num_attrs:
            raise AttrCountMismatchError(
                f"record has {len(encoded)} attributes, block holds {head.num_attrs}"
            )
        body = b"".join(encoded)
        data[start : start + len(body)] = body
        self._mark_dirty()


class IndInternal(BlockBuffer):
    """An internal node of a B+ tree."""

    BLOCK_TYPE = BlockType.IND_INTERNAL

    @staticmethod
    def _offset(index):
        if not 0 <= index < MAX_KEYS_INTERNAL:
            raise OutOfBoundError(f"entry {index} is outside an internal node")
        return HEADER_SIZE + index * _INTERNAL_STRIDE

    def read_entry(self, index):
        """Return the entry at a position."""
        offset = self._offset(index)
        lchild, attr_val, rchild = _INTERNAL.unpack_from(self._data(), offset)
        return InternalEntry(lchild, attr_val, rchild)

    def write_entry(self, entry, index):
        """Store an entry at a position."""
        offset = self._offset(index)
        data = self._data()
        _INTERNAL.pack_into(
            data, offset, entry.lchild, encode_attr(entry.attr_val), entry.rchild
        )
        self._mark_dirty()


class IndLeaf(BlockBuffer):
    """A leaf node of a B+ tree."""

    BLOCK_TYPE = BlockType.IND_LEAF

    @staticmethod
    def _offset(index):
        if not 0 <= index < MAX_KEYS_LEAF:
            raise OutOfBoundError(f"entry {index} is outside a leaf node")
        return HEADER_SIZE + index * LEAF_ENTRY_SIZE

    def read_entry(self, index):
        """Return the entry at a position."""
        offset = self._offset(index)
        attr_val, block, slot = _LEAF.unpack_from(self._data(), offset)
        return LeafEntry(attr_val, block, slot)

    def write_entry(self, entry, index):
        """Store an entry at a position."""
        offset = self._offset(index)
        data = self._data()
        _LEAF.pack_into(data, offset, encode_attr(entry.attr_val), entry.block, entry.slot)
        self._mark_dirty()
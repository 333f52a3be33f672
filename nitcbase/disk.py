"""Block-addressed disk file with a working copy for the running session."""

import shutil
import struct
from pathlib import Path

from .constants import (
    ATTR_SIZE,
    ATTRCAT_BLOCK,
    ATTRCAT_NO_ATTRS,
    BLOCK_ALLOCATION_MAP_SIZE,
    BLOCK_SIZE,
    DISK_BLOCKS,
    DISK_PATH,
    DISK_RUN_COPY_PATH,
    DISK_SIZE,
    HEADER_SIZE,
    RELCAT_BLOCK,
    RELCAT_NO_ATTRS,
    SLOTMAP_SIZE_RELCAT_ATTRCAT,
    AttrType,
    BlockType,
)
from .errors import InvalidArgumentError, OutOfBoundError

_HEADER = struct.Struct("<7i4x")

_RESERVED_BLOCKS = 6

_RELCAT_RECORDS = [
    ("RELATIONCAT", 6, 2, 4, 4, 20),
    ("ATTRIBUTECAT", 6, 12, 5, 5, 20),
]

_ATTRCAT_RECORDS = [
    ("RELATIONCAT", "RelName", AttrType.STRING, -1, -1, 0),
    ("RELATIONCAT", "#Attributes", AttrType.NUMBER, -1, -1, 1),
    ("RELATIONCAT", "#Records", AttrType.NUMBER, -1, -1, 2),
    ("RELATIONCAT", "FirstBlock", AttrType.NUMBER, -1, -1, 3),
    ("RELATIONCAT", "LastBlock", AttrType.NUMBER, -1, -1, 4),
    ("RELATIONCAT", "#Slots", AttrType.NUMBER, -1, -1, 5),
    ("ATTRIBUTECAT", "RelName", AttrType.STRING, -1, -1, 0),
    ("ATTRIBUTECAT", "AttributeName", AttrType.STRING, -1, -1, 1),
    ("ATTRIBUTECAT", "AttributeType", AttrType.NUMBER, -1, -1, 2),
    ("ATTRIBUTECAT", "PrimaryFlag", AttrType.NUMBER, -1, -1, 3),
    ("ATTRIBUTECAT", "RootBlock", AttrType.NUMBER, -1, -1, 4),
    ("ATTRIBUTECAT", "#Offset", AttrType.NUMBER, -1, -1, 5),
]


def _encode_value(value):
    if isinstance(value, str):
        raw = value.encode("ascii")[: ATTR_SIZE - 1]
        return raw.ljust(ATTR_SIZE, b"\0")
    return struct.pack("<d", float(value)).ljust(ATTR_SIZE, b"\0")


def _encode_record(values):
    return b"".join(_encode_value(value) for value in values)


class Disk:
    """The disk file plus the working copy that a session reads and writes.

    Entering the context copies the disk to the working copy; leaving it
    without an exception copies the working copy back.
    """

    def __init__(self, path=DISK_PATH, run_copy_path=DISK_RUN_COPY_PATH):
        self.path = Path(path)
        self.run_copy_path = Path(run_copy_path)

    def __enter__(self):
        self.run_copy_path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists():
            shutil.copyfile(self.path, self.run_copy_path)
        else:
            self.run_copy_path.write_bytes(b"")
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.commit()
        return False

    def commit(self):
        """Copy the working copy over the disk file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.run_copy_path, self.path)

    @staticmethod
    def _check_block(block_num):
        if not 0 <= block_num < DISK_BLOCKS:
            raise OutOfBoundError(f"block {block_num} is outside the disk")

    def read_block(self, block_num):
        """Return the BLOCK_SIZE bytes of a block."""
        self._check_block(block_num)
        with open(self.run_copy_path, "rb") as disk:
            disk.seek(block_num * BLOCK_SIZE)
            data = disk.read(BLOCK_SIZE)
        return data.ljust(BLOCK_SIZE, b"\0")

    def write_block(self, block_num, data):
        """Overwrite a block with exactly BLOCK_SIZE bytes."""
        self._check_block(block_num)
        if len(data) != BLOCK_SIZE:
            raise InvalidArgumentError(
                f"a block holds {BLOCK_SIZE} bytes, got {len(data)}"
            )
        with open(self.run_copy_path, "r+b") as disk:
            disk.seek(block_num * BLOCK_SIZE)
            disk.write(bytes(data))

    def create(self):
        """Make the working copy a zero-filled disk."""
        self.run_copy_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.run_copy_path, "wb") as disk:
            disk.truncate(DISK_SIZE)

    def format(self):
        """Write a fresh block allocation map to the working copy."""
        size = BLOCK_SIZE * BLOCK_ALLOCATION_MAP_SIZE
        alloc_map = bytearray([BlockType.UNUSED]) * size
        alloc_map[:BLOCK_ALLOCATION_MAP_SIZE] = bytes([BlockType.BMAP]) * BLOCK_ALLOCATION_MAP_SIZE
        alloc_map[BLOCK_ALLOCATION_MAP_SIZE:_RESERVED_BLOCKS] = bytes([BlockType.REC]) * (
            _RESERVED_BLOCKS - BLOCK_ALLOCATION_MAP_SIZE
        )
        with open(self.run_copy_path, "r+b") as disk:
            disk.seek(0)
            disk.write(alloc_map)

    def _write_catalog(self, block_num, records, num_attrs):
        block = bytearray(self.read_block(block_num))
        count = len(records)
        block[:HEADER_SIZE] = _HEADER.pack(
            BlockType.REC, -1, -1, -1, count, num_attrs, SLOTMAP_SIZE_RELCAT_ATTRCAT
        )
        slot_map = b"1" * count + b"0" * (SLOTMAP_SIZE_RELCAT_ATTRCAT - count)
        block[HEADER_SIZE : HEADER_SIZE + SLOTMAP_SIZE_RELCAT_ATTRCAT] = slot_map
        start = HEADER_SIZE + SLOTMAP_SIZE_RELCAT_ATTRCAT
        body = b"".join(_encode_record(record) for record in records)
        block[start : start + len(body)] = body
        self.write_block(block_num, block)

    def add_metadata(self):
        """Write the relation and attribute catalogs describing themselves."""
        self._write_catalog(RELCAT_BLOCK, _RELCAT_RECORDS, RELCAT_NO_ATTRS)
        self._write_catalog(ATTRCAT_BLOCK, _ATTRCAT_RECORDS, ATTRCAT_NO_ATTRS)
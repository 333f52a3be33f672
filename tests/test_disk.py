import struct

import pytest

from nitcbase.constants import (
    ATTR_SIZE,
    ATTRCAT_BLOCK,
    BLOCK_SIZE,
    DISK_BLOCKS,
    DISK_SIZE,
    HEADER_SIZE,
    RELCAT_BLOCK,
    SLOTMAP_SIZE_RELCAT_ATTRCAT,
    BlockType,
)
from nitcbase.disk import Disk
from nitcbase.errors import InvalidArgumentError, OutOfBoundError


@pytest.fixture
def paths(tmp_path):
    return tmp_path / "disk", tmp_path / "run" / "disk_run_copy"


@pytest.fixture
def formatted(paths):
    disk = Disk(*paths)
    with disk:
        disk.create()
        disk.format()
        disk.add_metadata()
        yield disk


def test_enter_copies_disk_to_run_copy(paths):
    path, run = paths
    content = bytes(range(256)) * (2 * BLOCK_SIZE // 256)
    path.write_bytes(content)
    with Disk(path, run) as disk:
        assert disk.read_block(1) == content[BLOCK_SIZE:]
        assert run.read_bytes() == content


def test_missing_disk_reads_zeros(paths):
    with Disk(*paths) as disk:
        assert disk.read_block(3) == bytes(BLOCK_SIZE)


@pytest.mark.parametrize("block", [-1, DISK_BLOCKS])
def test_read_out_of_bound(formatted, block):
    with pytest.raises(OutOfBoundError):
        formatted.read_block(block)


def test_write_read_round_trip(formatted):
    data = b"\xab" * BLOCK_SIZE
    formatted.write_block(100, data)
    assert formatted.read_block(100) == data
    assert formatted.read_block(99) == bytes(BLOCK_SIZE)


def test_write_wrong_size(formatted):
    with pytest.raises(InvalidArgumentError):
        formatted.write_block(10, b"short")


def test_write_out_of_bound(formatted):
    with pytest.raises(OutOfBoundError):
        formatted.write_block(DISK_BLOCKS, bytes(BLOCK_SIZE))


def test_create_sizes_disk(paths):
    _, run = paths
    with Disk(*paths) as disk:
        disk.create()
        assert run.stat().st_size == DISK_SIZE


def test_clean_exit_commits(paths):
    path, run = paths
    data = b"\x07" * BLOCK_SIZE
    with Disk(path, run) as disk:
        disk.create()
        disk.write_block(0, data)
    assert path.read_bytes()[:BLOCK_SIZE] == data


def test_exit_with_exception_keeps_disk(paths):
    path, run = paths
    path.write_bytes(bytes(2 * BLOCK_SIZE))
    with pytest.raises(RuntimeError):
        with Disk(path, run) as disk:
            disk.write_block(0, b"\x01" * BLOCK_SIZE)
            raise RuntimeError("boom")
    assert path.read_bytes() == bytes(2 * BLOCK_SIZE)


def test_format_allocation_map(formatted):
    first = formatted.read_block(0)
    assert list(first[:4]) == [BlockType.BMAP] * 4
    assert list(first[4:6]) == [BlockType.REC] * 2
    assert set(first[6:]) == {BlockType.UNUSED}
    assert set(formatted.read_block(3)) == {BlockType.UNUSED}


def test_relcat_metadata(formatted):
    block = formatted.read_block(RELCAT_BLOCK)
    assert struct.unpack_from("<7i", block) == (BlockType.REC, -1, -1, -1, 2, 6, 20)
    slot_map = block[HEADER_SIZE : HEADER_SIZE + SLOTMAP_SIZE_RELCAT_ATTRCAT]
    assert slot_map == b"11" + b"0" * (SLOTMAP_SIZE_RELCAT_ATTRCAT - 2)
    start = HEADER_SIZE + SLOTMAP_SIZE_RELCAT_ATTRCAT
    assert block[start : start + ATTR_SIZE].rstrip(b"\0") == b"RELATIONCAT"
    second = start + 6 * ATTR_SIZE
    assert block[second : second + ATTR_SIZE].rstrip(b"\0") == b"ATTRIBUTECAT"
    assert struct.unpack_from("<d", block, second + 2 * ATTR_SIZE)[0] == 12.0


def test_attrcat_metadata(formatted):
    block = formatted.read_block(ATTRCAT_BLOCK)
    assert struct.unpack_from("<7i", block)[4:7] == (12, 6, 20)
    record_size = 6 * ATTR_SIZE
    last = HEADER_SIZE + SLOTMAP_SIZE_RELCAT_ATTRCAT + 11 * record_size
    assert block[last + ATTR_SIZE : last + 2 * ATTR_SIZE].rstrip(b"\0") == b"#Offset"
    assert struct.unpack_from("<d", block, last + 5 * ATTR_SIZE)[0] == 5.0
    assert struct.unpack_from("<d", block, last + 4 * ATTR_SIZE)[0] == -1.0
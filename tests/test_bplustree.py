import random
from types import SimpleNamespace

import pytest

from nitcbase.attrcache import AttrCacheEntry, AttrCacheTable, AttrCatEntry
from nitcbase.blockbuffer import IndLeaf, RecBuffer, decode_attr
from nitcbase.bplustree import BPlusTree
from nitcbase.constants import DISK_BLOCKS, AttrType, BlockType, Op, RecId
from nitcbase.disk import Disk
from nitcbase.errors import (
    AttributeNotExistError,
    AttrTypeMismatchError,
    DiskFullError,
    InvalidBlockError,
    NoIndexError,
    NotPermittedError,
    OutOfBoundError,
)
from nitcbase.relcache import RelCacheEntry, RelCacheTable, RelCatEntry
from nitcbase.staticbuffer import StaticBuffer

REL_ID = 2


@pytest.fixture
def env(tmp_path):
    disk = Disk(tmp_path / "disk", tmp_path / "disk_run_copy")
    disk.create()
    disk.format()
    disk.add_metadata()
    buffer = StaticBuffer(disk)
    rel_cache = RelCacheTable()
    attr_cache = AttrCacheTable()
    tree = BPlusTree(buffer, rel_cache, attr_cache)
    return SimpleNamespace(buffer=buffer, rel_cache=rel_cache, attr_cache=attr_cache, tree=tree)


def build_relation(env, attrs, rows, name="people"):
    num_attrs = len(attrs)
    slots = 2016 // (16 * num_attrs + 1)
    blocks = []
    for start in range(0, len(rows), slots):
        chunk = rows[start : start + slots]
        rec = RecBuffer.allocate(env.buffer)
        head = rec.read_header()
        head.num_attrs = num_attrs
        head.num_slots = slots
        head.lblock = blocks[-1] if blocks else -1
        rec.write_header(head)
        rec.write_slot_map(b"1" * len(chunk) + b"0" * (slots - len(chunk)))
        for slot, row in enumerate(chunk):
            rec.write_record(list(row), slot)
        if blocks:
            prev = RecBuffer(env.buffer, blocks[-1])
            prev_head = prev.read_header()
            prev_head.rblock = rec.block_num
            prev.write_header(prev_head)
        blocks.append(rec.block_num)
    first = blocks[0] if blocks else -1
    last = blocks[-1] if blocks else -1
    env.rel_cache.load(
        REL_ID,
        RelCacheEntry(RelCatEntry(name, num_attrs, len(rows), first, last, slots), RecId(4, 2)),
    )
    env.attr_cache.load(
        REL_ID,
        [
            AttrCacheEntry(
                AttrCatEntry(name, attr_name, attr_type, False, -1, offset),
                RecId(5, 12 + offset),
            )
            for offset, (attr_name, attr_type) in enumerate(attrs)
        ],
    )
    return blocks


def collect(env, attr_name, value, op):
    env.attr_cache.reset_search_index(REL_ID, attr_name)
    found = []
    while (rec_id := env.tree.search(REL_ID, attr_name, value, op)) is not None:
        found.append(rec_id)
    return found


PEOPLE_ATTRS = [("name", AttrType.STRING), ("age", AttrType.NUMBER)]
PEOPLE = [("carol", 3.0), ("alice", 1.0), ("erin", 5.0), ("bob", 2.0), ("dave", 4.0)]


def root_of(env, attr_name):
    return env.attr_cache.get(REL_ID, attr_name).root_block


def test_create_builds_sorted_leaf_root(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "age")
    root = root_of(env, "age")
    assert env.buffer.get_block_type(root) == BlockType.IND_LEAF
    leaf = IndLeaf(env.buffer, root)
    head = leaf.read_header()
    assert head.num_entries == len(PEOPLE)
    entries = [leaf.read_entry(i) for i in range(head.num_entries)]
    assert [decode_attr(e.attr_val, AttrType.NUMBER) for e in entries] == [1.0, 2.0, 3.0, 4.0, 5.0]
    assert [e.slot for e in entries] == [1, 3, 0, 4, 2]


def test_search_eq_finds_record(env):
    blocks = build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "age")
    assert collect(env, "age", 4.0, Op.EQ) == [RecId(blocks[0], 4)]
    assert collect(env, "age", 7.0, Op.EQ) == []


@pytest.mark.parametrize(
    "op, expected",
    [
        (Op.LT, ["alice", "bob"]),
        (Op.LE, ["alice", "bob", "carol"]),
        (Op.GT, ["dave", "erin"]),
        (Op.GE, ["carol", "dave", "erin"]),
        (Op.NE, ["alice", "bob", "dave", "erin"]),
    ],
)
def test_search_operators(env, op, expected):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "age")
    found = collect(env, "age", 3.0, op)
    assert [PEOPLE[r.slot][0] for r in found] == expected


def test_string_index(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "name")
    found = collect(env, "name", "c", Op.LT)
    assert [PEOPLE[r.slot][0] for r in found] == ["alice", "bob"]
    found = collect(env, "name", "dave", Op.EQ)
    assert [PEOPLE[r.slot][0] for r in found] == ["dave"]


def test_string_index_rejects_number(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "name")
    env.attr_cache.reset_search_index(REL_ID, "name")
    with pytest.raises(AttrTypeMismatchError):
        env.tree.search(REL_ID, "name", 3.0, Op.EQ)


def test_many_inserts_split_leaves(env):
    build_relation(env, PEOPLE_ATTRS, [])
    env.tree.create(REL_ID, "age")
    values = list(range(200))
    random.Random(0).shuffle(values)
    for value in values:
        env.tree.insert(REL_ID, "age", float(value), RecId(7, value))

    assert env.buffer.get_block_type(root_of(env, "age")) == BlockType.IND_INTERNAL
    for value in (0, 31, 32, 99, 150, 199):
        assert collect(env, "age", float(value), Op.EQ) == [RecId(7, value)]
    assert [r.slot for r in collect(env, "age", 0.0, Op.GE)] == list(range(200))
    assert [r.slot for r in collect(env, "age", 150.0, Op.GE)] == list(range(150, 200))
    assert [r.slot for r in collect(env, "age", 50.0, Op.LT)] == list(range(50))
    assert len(collect(env, "age", 10.0, Op.NE)) == 199


def test_duplicate_keys_across_splits(env):
    build_relation(env, PEOPLE_ATTRS, [])
    env.tree.create(REL_ID, "age")
    for slot in range(150):
        env.tree.insert(REL_ID, "age", 5.0, RecId(7, slot))
    found = collect(env, "age", 5.0, Op.EQ)
    assert sorted(r.slot for r in found) == list(range(150))
    assert collect(env, "age", 5.0, Op.NE) == []


def test_create_indexes_existing_records_over_several_blocks(env):
    rows = [(f"n{i}", float(i)) for i in range(150)]
    blocks = build_relation(env, PEOPLE_ATTRS, rows)
    assert len(blocks) > 1
    env.tree.create(REL_ID, "age")
    found = collect(env, "age", 0.0, Op.GE)
    assert len(found) == len(rows)
    assert set(found) == {
        RecId(block, slot)
        for block in blocks
        for slot in range(len(RecBuffer(env.buffer, block).read_slot_map()))
        if RecBuffer(env.buffer, block).read_slot_map()[slot] == ord("1")
    }


def test_destroy_releases_every_index_block(env):
    build_relation(env, PEOPLE_ATTRS, [])
    env.tree.create(REL_ID, "age")
    for value in range(200):
        env.tree.insert(REL_ID, "age", float(value), RecId(7, value))
    root = root_of(env, "age")
    env.tree.destroy(root)
    assert env.buffer.get_block_type(root) == BlockType.UNUSED
    index_types = {BlockType.IND_LEAF, BlockType.IND_INTERNAL}
    assert not any(t in index_types for t in env.buffer.block_alloc_map)


@pytest.mark.parametrize("block", [-1, DISK_BLOCKS])
def test_destroy_out_of_bound(env, block):
    with pytest.raises(OutOfBoundError):
        env.tree.destroy(block)


def test_destroy_record_block_is_invalid(env):
    with pytest.raises(InvalidBlockError):
        env.tree.destroy(4)


@pytest.mark.parametrize("rel_id", [0, 1])
def test_create_on_catalog_not_permitted(env, rel_id):
    with pytest.raises(NotPermittedError):
        env.tree.create(rel_id, "RelName")


def test_create_unknown_attribute(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    with pytest.raises(AttributeNotExistError):
        env.tree.create(REL_ID, "height")


def test_create_twice_keeps_root(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.tree.create(REL_ID, "age")
    root = root_of(env, "age")
    env.tree.create(REL_ID, "age")
    assert root_of(env, "age") == root
    assert len(collect(env, "age", 0.0, Op.GE)) == len(PEOPLE)


def test_insert_without_index(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    with pytest.raises(NoIndexError):
        env.tree.insert(REL_ID, "age", 1.0, RecId(7, 0))


def test_search_without_index_returns_none(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    env.attr_cache.reset_search_index(REL_ID, "age")
    assert env.tree.search(REL_ID, "age", 1.0, Op.EQ) is None


def fill_disk(env):
    for block in range(DISK_BLOCKS):
        if env.buffer.get_block_type(block) == BlockType.UNUSED:
            env.buffer.set_block_type(block, BlockType.REC)


def test_create_on_full_disk(env):
    build_relation(env, PEOPLE_ATTRS, PEOPLE)
    fill_disk(env)
    with pytest.raises(DiskFullError):
        env.tree.create(REL_ID, "age")
    assert root_of(env, "age") == -1


def test_insert_on_full_disk_drops_index(env):
    build_relation(env, PEOPLE_ATTRS, [])
    env.tree.create(REL_ID, "age")
    root = root_of(env, "age")
    fill_disk(env)
    for value in range(63):
        env.tree.insert(REL_ID, "age", float(value), RecId(7, value))
    with pytest.raises(DiskFullError):
        env.tree.insert(REL_ID, "age", 63.0, RecId(7, 63))
    assert root_of(env, "age") == -1
    assert env.buffer.get_block_type(root) == BlockType.UNUSED
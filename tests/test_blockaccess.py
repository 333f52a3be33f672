import pytest

from nitcbase.blockbuffer import decode_attr
from nitcbase.constants import (
    ATTRCAT_RELID,
    RELCAT_RELID,
    AttrType,
    BlockType,
    Op,
)
from nitcbase.database import Database
from nitcbase.disk import Disk
from nitcbase.errors import (
    AttributeExistsError,
    AttributeNotExistError,
    MaxRelationsError,
    NotPermittedError,
    RelationExistsError,
    RelationNotExistError,
)


@pytest.fixture
def db(tmp_path):
    disk = Disk(tmp_path / "disk", tmp_path / "run")
    disk.create()
    disk.format()
    disk.add_metadata()
    return Database(disk)


def make_relation(db, name, attrs):
    count = len(attrs)
    db.block_access.insert(RELCAT_RELID, [name, count, 0, -1, -1, 2016 // (16 * count + 1)])
    for offset, (attr, attr_type) in enumerate(attrs):
        db.block_access.insert(ATTRCAT_RELID, [name, attr, int(attr_type), -1, -1, offset])


def all_records(db, rel_id):
    db.rel_cache.reset_search_index(rel_id)
    records = []
    while (record := db.block_access.project(rel_id)) is not None:
        records.append(record)
    return records


def test_insert_and_project_round_trip(db):
    make_relation(db, "people", [("name", AttrType.STRING), ("age", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("people")
    db.block_access.insert(rel_id, ["ann", 30])
    db.block_access.insert(rel_id, ["bob", 41])
    rows = [
        (decode_attr(r[0], AttrType.STRING), decode_attr(r[1], AttrType.NUMBER))
        for r in all_records(db, rel_id)
    ]
    assert rows == [("ann", 30.0), ("bob", 41.0)]
    assert db.rel_cache.get(rel_id).num_recs == 2


def test_insert_spans_several_blocks(db):
    make_relation(db, "nums", [("val", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("nums")
    for value in range(130):
        db.block_access.insert(rel_id, [value])
    values = [decode_attr(r[0], AttrType.NUMBER) for r in all_records(db, rel_id)]
    assert values == list(range(130))
    rel_cat = db.rel_cache.get(rel_id)
    assert rel_cat.first_blk != rel_cat.last_blk
    assert rel_cat.num_recs == 130


def test_linear_search_continues_between_calls(db):
    make_relation(db, "nums", [("val", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("nums")
    ids = [db.block_access.insert(rel_id, [v]) for v in (1, 5, 1, 7)]
    db.rel_cache.reset_search_index(rel_id)
    first = db.block_access.linear_search(rel_id, "val", 1, Op.EQ)
    second = db.block_access.linear_search(rel_id, "val", 1, Op.EQ)
    third = db.block_access.linear_search(rel_id, "val", 1, Op.EQ)
    assert (first, second, third) == (ids[0], ids[2], None)


def test_search_without_match_returns_none(db):
    make_relation(db, "nums", [("val", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("nums")
    db.block_access.insert(rel_id, [3])
    db.rel_cache.reset_search_index(rel_id)
    assert db.block_access.search(rel_id, "val", 3, Op.GT) is None


def test_search_unknown_attribute(db):
    make_relation(db, "nums", [("val", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("nums")
    with pytest.raises(AttributeNotExistError):
        db.block_access.search(rel_id, "missing", 3, Op.EQ)


def test_search_through_index(db):
    make_relation(db, "nums", [("val", AttrType.NUMBER)])
    rel_id = db.open_rel_table.open("nums")
    for value in range(10):
        db.block_access.insert(rel_id, [value])
    db.bplustree.create(rel_id, "val")
    db.block_access.insert(rel_id, [100])
    assert db.attr_cache.get(rel_id, "val").root_block != -1
    db.attr_cache.reset_search_index(rel_id, "val")
    record = db.block_access.search(rel_id, "val", 100, Op.EQ)
    assert decode_attr(record[0], AttrType.NUMBER) == 100
    db.attr_cache.reset_search_index(rel_id, "val")
    record = db.block_access.search(rel_id, "val", 5, Op.EQ)
    assert decode_attr(record[0], AttrType.NUMBER) == 5


def test_relation_catalog_fills_up(db):
    for i in range(18):
        db.block_access.insert(RELCAT_RELID, [f"r{i}", 1, 0, -1, -1, 118])
    with pytest.raises(MaxRelationsError):
        db.block_access.insert(RELCAT_RELID, ["extra", 1, 0, -1, -1, 118])


def test_rename_relation(db):
    make_relation(db, "alpha", [("a", AttrType.NUMBER), ("b", AttrType.STRING)])
    make_relation(db, "beta", [("a", AttrType.NUMBER)])
    with pytest.raises(RelationExistsError):
        db.block_access.rename_relation("alpha", "beta")
    with pytest.raises(RelationNotExistError):
        db.block_access.rename_relation("gamma", "delta")
    db.block_access.rename_relation("alpha", "omega")
    rel_id = db.open_rel_table.open("omega")
    assert db.rel_cache.get(rel_id).rel_name == "omega"
    assert [e.attr_cat_entry.rel_name for e in db.attr_cache.entries(rel_id)] == ["omega", "omega"]
    with pytest.raises(RelationNotExistError):
        db.open_rel_table.open("alpha")


def test_rename_attribute(db):
    make_relation(db, "alpha", [("a", AttrType.NUMBER), ("b", AttrType.STRING)])
    with pytest.raises(RelationNotExistError):
        db.block_access.rename_attribute("nope", "a", "c")
    with pytest.raises(AttributeExistsError):
        db.block_access.rename_attribute("alpha", "a", "b")
    with pytest.raises(AttributeNotExistError):
        db.block_access.rename_attribute("alpha", "z", "c")
    db.block_access.rename_attribute("alpha", "a", "c")
    rel_id = db.open_rel_table.open("alpha")
    assert db.attr_cache.get(rel_id, "c").offset == 0
    with pytest.raises(AttributeNotExistError):
        db.attr_cache.get(rel_id, "a")


def test_delete_relation(db):
    make_relation(db, "alpha", [("a", AttrType.NUMBER), ("b", AttrType.STRING)])
    rel_id = db.open_rel_table.open("alpha")
    db.block_access.insert(rel_id, [1, "x"])
    first_blk = db.rel_cache.get(rel_id).first_blk
    db.open_rel_table.close(rel_id)

    db.block_access.delete_relation("alpha")
    assert db.rel_cache.get(RELCAT_RELID).num_recs == 2
    assert db.rel_cache.get(ATTRCAT_RELID).num_recs == 12
    assert db.buffer.get_block_type(first_blk) == BlockType.UNUSED
    with pytest.raises(RelationNotExistError):
        db.open_rel_table.open("alpha")


def test_delete_relation_errors(db):
    with pytest.raises(NotPermittedError):
        db.block_access.delete_relation("RELATIONCAT")
    with pytest.raises(RelationNotExistError):
        db.block_access.delete_relation("ghost")
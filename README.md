# nitcbase

The storage layers of a small relational database engine that keeps its data
in a single block-structured disk file:

- `nitcbase.disk.Disk`: a disk of 8192 blocks of 2048 bytes. The first four
  blocks hold the block allocation map; blocks 4 and 5 hold the relation
  catalog and the attribute catalog. A session works on a run copy of the
  disk file.
- `nitcbase.staticbuffer.StaticBuffer`: a pool of 32 block buffers that
  evicts the least recently used block and writes it back if it is dirty.
- `nitcbase.blockbuffer`: views onto buffered blocks — `RecBuffer` (slot map
  and fixed-size records), `IndInternal` and `IndLeaf` (B+ tree nodes), plus
  `compare_attrs`, `encode_attr` and `decode_attr` for 16-byte attribute
  fields.
- `nitcbase.relcache.RelCacheTable` and `nitcbase.attrcache.AttrCacheTable`:
  catalog entries of up to 12 open relations.
- `nitcbase.bplustree.BPlusTree`: building, searching, inserting into and
  destroying B+ tree indexes on one attribute.
- `nitcbase.blockaccess.BlockAccess`: linear and indexed search, insertion,
  projection, renaming and deletion of relations at record level.
- `nitcbase.openreltable.OpenRelTable`: opening and closing relations and
  writing changed catalog entries back.
- `nitcbase.database.Database`: all of the above wired together over a disk.

Helpers for a command language are also included: `nitcbase.commands`
(`Command`, an enum of case-insensitive command patterns, and
`match_command`), `nitcbase.parsing` (`extract_tokens`, `parse_operator`,
`truncate_name`) and `nitcbase.messages` (`error_message`, `help_text`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

Relations are created by inserting rows into the two catalogs; records are
then stored through `BlockAccess`.

```python
from nitcbase.blockbuffer import decode_attr
from nitcbase.constants import ATTRCAT_RELID, RELCAT_RELID, AttrType, Op
from nitcbase.database import Database
from nitcbase.disk import Disk

with Disk("disk", "disk_run_copy") as disk:
    disk.create()
    disk.format()
    disk.add_metadata()

    with Database(disk) as db:
        access = db.block_access
        # name, #attributes, #records, first block, last block, #slots per block
        access.insert(RELCAT_RELID, ["Students", 2, 0, -1, -1, 2016 // (16 * 2 + 1)])
        # relation, attribute, type, primary flag, root block, offset
        access.insert(ATTRCAT_RELID, ["Students", "Name", AttrType.STRING, -1, -1, 0])
        access.insert(ATTRCAT_RELID, ["Students", "Marks", AttrType.NUMBER, -1, -1, 1])

        rel_id = db.open_rel_table.open("Students")
        access.insert(rel_id, ["Alice", 91])
        access.insert(rel_id, ["Bob", 78])

        db.bplustree.create(rel_id, "Marks")
        db.attr_cache.reset_search_index(rel_id, "Marks")
        record = access.search(rel_id, "Marks", 90, Op.GE)
        print(decode_attr(record[0], AttrType.STRING))  # Alice
```

Leaving the `Database` block closes every relation, writes changed catalog
entries and dirty buffers to the run copy; leaving the `Disk` block without
an exception copies the run copy over the disk file.

Failures raise subclasses of `nitcbase.errors.DatabaseError`, such as
`RelationNotOpenError`, `RelationExistsError`, `DiskFullError` or
`IndexBlocksReleased` (the record was stored but an index had to be dropped
for lack of space). `nitcbase.messages.error_message` turns one into the line
a user would be shown.

## What this package does not do

There is no interactive shell and no command-line program: `match_command`
recognises a command, but nothing here runs it. There are no table-level
operations either — no `CREATE TABLE` with duplicate-name checks, no
select, project or join into new relations, and no printing or listing of
tables. These have to be built on top of `Database` and `BlockAccess`.
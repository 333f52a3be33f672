"""Table of open relations and the loading of their catalog entries into the caches."""

from contextlib import suppress

from .attrcache import AttrCacheEntry, AttrCatEntry
from .blockbuffer import RecBuffer
from .constants import (
    ATTRCAT_ATTR_RELNAME,
    ATTRCAT_BLOCK,
    ATTRCAT_RELID,
    ATTRCAT_RELNAME,
    MAX_OPEN,
    RELCAT_ATTR_RELNAME,
    RELCAT_BLOCK,
    RELCAT_RELID,
    RELCAT_RELNAME,
    Op,
    RecId,
)
from .errors import (
    CacheFullError,
    DatabaseError,
    NotPermittedError,
    OutOfBoundError,
    RelationNotExistError,
    RelationNotOpenError,
)
from .relcache import RelCacheEntry, RelCatEntry

_CATALOGS = ((RELCAT_RELID, RELCAT_RELNAME), (ATTRCAT_RELID, ATTRCAT_RELNAME))


class OpenRelTable:
    """Tracks which relations are open and keeps their caches filled."""

    def __init__(self, buffer, rel_cache, attr_cache, block_access):
        self.buffer = buffer
        self.rel_cache = rel_cache
        self.attr_cache = attr_cache
        self.block_access = block_access
        self._names = [None] * MAX_OPEN

    def _clear(self):
        for rel_id in range(MAX_OPEN):
            self.rel_cache.load(rel_id, None)
            with suppress(RelationNotOpenError):
                self.attr_cache.remove(rel_id)
        self._names = [None] * MAX_OPEN

    def load(self):
        """Forget every open relation and open the two catalogs from disk."""
        relcat_block = RecBuffer(self.buffer, RELCAT_BLOCK)
        rel_entries = [
            RelCacheEntry(
                RelCatEntry.from_record(relcat_block.read_record(rel_id)),
                RecId(RELCAT_BLOCK, rel_id),
            )
            for rel_id, _ in _CATALOGS
        ]

        attrcat_block = RecBuffer(self.buffer, ATTRCAT_BLOCK)
        attr_lists = []
        slot = 0
        for rel_entry in rel_entries:
            count = rel_entry.rel_cat_entry.num_attrs
            attr_lists.append(
                [
                    AttrCacheEntry(
                        AttrCatEntry.from_record(attrcat_block.read_record(s)),
                        RecId(ATTRCAT_BLOCK, s),
                    )
                    for s in range(slot, slot + count)
                ]
            )
            slot += count

        self._clear()
        for (rel_id, name), rel_entry, attrs in zip(_CATALOGS, rel_entries, attr_lists):
            self.rel_cache.load(rel_id, rel_entry)
            self.attr_cache.load(rel_id, attrs)
            self._names[rel_id] = name

    def get_rel_id(self, rel_name):
        """Return the id under which a relation is open."""
        for rel_id, name in enumerate(self._names):
            if name == rel_name:
                return rel_id
        raise RelationNotOpenError()

    def open(self, rel_name):
        """Open a relation, loading its catalog entries, and return its id."""
        try:
            return self.get_rel_id(rel_name)
        except RelationNotOpenError:
            pass

        rel_id = next(
            (i for i in range(ATTRCAT_RELID + 1, MAX_OPEN) if self._names[i] is None), None
        )
        if rel_id is None:
            raise CacheFullError()

        self.rel_cache.reset_search_index(RELCAT_RELID)
        relcat_id = self.block_access.linear_search(
            RELCAT_RELID, RELCAT_ATTR_RELNAME, rel_name, Op.EQ
        )
        if relcat_id is None:
            raise RelationNotExistError()

        record = RecBuffer(self.buffer, relcat_id.block).read_record(relcat_id.slot)
        rel_entry = RelCacheEntry(RelCatEntry.from_record(record), relcat_id)

        self.rel_cache.reset_search_index(ATTRCAT_RELID)
        attrs = []
        for _ in range(rel_entry.rel_cat_entry.num_attrs):
            attr_id = self.block_access.linear_search(
                ATTRCAT_RELID, ATTRCAT_ATTR_RELNAME, rel_name, Op.EQ
            )
            if attr_id is None:
                raise DatabaseError(f"attribute catalog is missing entries of {rel_name}")
            attr_record = RecBuffer(self.buffer, attr_id.block).read_record(attr_id.slot)
            attrs.append(AttrCacheEntry(AttrCatEntry.from_record(attr_record), attr_id))

        self.rel_cache.load(rel_id, rel_entry)
        self.attr_cache.load(rel_id, attrs)
        self._names[rel_id] = rel_name
        return rel_id

    def _write_back_relation(self, rel_entry):
        if rel_entry.dirty:
            RecBuffer(self.buffer, rel_entry.rec_id.block).write_record(
                rel_entry.rel_cat_entry.to_record(), rel_entry.rec_id.slot
            )
            rel_entry.dirty = False

    def close(self, rel_id):
        """Close a relation, writing changed catalog entries back to disk."""
        if rel_id in (RELCAT_RELID, ATTRCAT_RELID):
            raise NotPermittedError()
        if not 0 <= rel_id < MAX_OPEN:
            raise OutOfBoundError(f"relation id {rel_id} is out of range")
        if self._names[rel_id] is None:
            raise RelationNotOpenError()

        self._write_back_relation(self.rel_cache.remove(rel_id))
        for attr_entry in self.attr_cache.remove(rel_id):
            if attr_entry.dirty:
                RecBuffer(self.buffer, attr_entry.rec_id.block).write_record(
                    attr_entry.attr_cat_entry.to_record(), attr_entry.rec_id.slot
                )
                attr_entry.dirty = False
        self._names[rel_id] = None

    def close_all(self):
        """Close every relation, including the catalogs."""
        for rel_id in range(ATTRCAT_RELID + 1, MAX_OPEN):
            if self._names[rel_id] is not None:
                self.close(rel_id)
        for rel_id in (ATTRCAT_RELID, RELCAT_RELID):
            if self._names[rel_id] is None:
                continue
            self._write_back_relation(self.rel_cache.remove(rel_id))
            self.attr_cache.remove(rel_id)
            self._names[rel_id] = None
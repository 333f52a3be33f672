"""Cache of attribute catalog entries for the open relations."""

from dataclasses import dataclass, field, replace

from .blockbuffer import decode_attr
from .constants import (
    ATTRCAT_ATTR_NAME_INDEX,
    ATTRCAT_ATTR_TYPE_INDEX,
    ATTRCAT_OFFSET_INDEX,
    ATTRCAT_PRIMARY_FLAG_INDEX,
    ATTRCAT_REL_NAME_INDEX,
    ATTRCAT_ROOT_BLOCK_INDEX,
    MAX_OPEN,
    AttrType,
    IndexId,
    RecId,
)
from .errors import AttributeNotExistError, OutOfBoundError, RelationNotOpenError


@dataclass
class AttrCatEntry:
    """One row of the attribute catalog."""

    rel_name: str
    attr_name: str
    attr_type: AttrType
    primary_flag: bool
    root_block: int
    offset: int

    @classmethod
    def from_record(cls, record):
        """Build an entry from an attribute catalog record."""

        def number(index):
            return decode_attr(record[index], AttrType.NUMBER)

        return cls(
            rel_name=decode_attr(record[ATTRCAT_REL_NAME_INDEX], AttrType.STRING),
            attr_name=decode_attr(record[ATTRCAT_ATTR_NAME_INDEX], AttrType.STRING),
            attr_type=AttrType(int(number(ATTRCAT_ATTR_TYPE_INDEX))),
            primary_flag=bool(number(ATTRCAT_PRIMARY_FLAG_INDEX)),
            root_block=int(number(ATTRCAT_ROOT_BLOCK_INDEX)),
            offset=int(number(ATTRCAT_OFFSET_INDEX)),
        )

    def to_record(self):
        """Return the entry as an attribute catalog record."""
        return [
            self.rel_name,
            self.attr_name,
            int(self.attr_type),
            int(self.primary_flag),
            self.root_block,
            self.offset,
        ]


@dataclass
class AttrCacheEntry:
    """A cached attribute entry with its location and index-search position."""

    attr_cat_entry: AttrCatEntry
    rec_id: RecId
    search_index: IndexId = field(default_factory=IndexId)
    dirty: bool = False


class AttrCacheTable:
    """Attribute catalog entries of the open relations, indexed by relation id.

    An attribute is looked up either by name (a str) or by offset (an int).
    """

    def __init__(self):
        self._entries = [None] * MAX_OPEN

    @staticmethod
    def _check_id(rel_id):
        if not 0 <= rel_id < MAX_OPEN:
            raise OutOfBoundError(f"relation id {rel_id} is out of range")

    def _relation(self, rel_id):
        self._check_id(rel_id)
        entries = self._entries[rel_id]
        if entries is None:
            raise RelationNotOpenError()
        return entries

    def _find(self, rel_id, attr):
        if isinstance(attr, str):
            matches = (e for e in self._relation(rel_id) if e.attr_cat_entry.attr_name == attr)
        else:
            matches = (e for e in self._relation(rel_id) if e.attr_cat_entry.offset == attr)
        entry = next(matches, None)
        if entry is None:
            raise AttributeNotExistError()
        return entry

    def load(self, rel_id, entries):
        """Cache the attribute entries of a relation."""
        self._check_id(rel_id)
        self._entries[rel_id] = list(entries)

    def remove(self, rel_id):
        """Drop a relation's entries and return them."""
        entries = self._relation(rel_id)
        self._entries[rel_id] = None
        return entries

    def entries(self, rel_id):
        """Return the cache entries of a relation in catalog order."""
        return list(self._relation(rel_id))

    def get(self, rel_id, attr):
        """Return a copy of an attribute's catalog entry."""
        return replace(self._find(rel_id, attr).attr_cat_entry)

    def set(self, rel_id, attr, attr_cat_entry):
        """Replace an attribute's catalog entry and mark it for write-back."""
        entry = self._find(rel_id, attr)
        entry.attr_cat_entry = replace(attr_cat_entry)
        entry.dirty = True

    def search_index(self, rel_id, attr):
        """Return the index entry where the last index search stopped."""
        return self._find(rel_id, attr).search_index

    def set_search_index(self, rel_id, attr, index_id):
        """Record where an index search stopped."""
        self._find(rel_id, attr).search_index = index_id

    def reset_search_index(self, rel_id, attr):
        """Make the next index search start from the root."""
        self.set_search_index(rel_id, attr, IndexId())
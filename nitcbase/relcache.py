"""Cache of relation catalog entries for the open relations."""

from dataclasses import dataclass, field, replace

from .blockbuffer import decode_attr
from .constants import (
    MAX_OPEN,
    RELCAT_FIRST_BLOCK_INDEX,
    RELCAT_LAST_BLOCK_INDEX,
    RELCAT_NO_ATTRIBUTES_INDEX,
    RELCAT_NO_RECORDS_INDEX,
    RELCAT_NO_SLOTS_PER_BLOCK_INDEX,
    RELCAT_REL_NAME_INDEX,
    AttrType,
    RecId,
)
from .errors import OutOfBoundError, RelationNotOpenError


@dataclass
class RelCatEntry:
    """One row of the relation catalog."""

    rel_name: str
    num_attrs: int
    num_recs: int
    first_blk: int
    last_blk: int
    num_slots_per_blk: int

    @classmethod
    def from_record(cls, record):
        """Build an entry from a relation catalog record."""

        def number(index):
            return int(decode_attr(record[index], AttrType.NUMBER))

        return cls(
            rel_name=decode_attr(record[RELCAT_REL_NAME_INDEX], AttrType.STRING),
            num_attrs=number(RELCAT_NO_ATTRIBUTES_INDEX),
            num_recs=number(RELCAT_NO_RECORDS_INDEX),
            first_blk=number(RELCAT_FIRST_BLOCK_INDEX),
            last_blk=number(RELCAT_LAST_BLOCK_INDEX),
            num_slots_per_blk=number(RELCAT_NO_SLOTS_PER_BLOCK_INDEX),
        )

    def to_record(self):
        """Return the entry as a relation catalog record."""
        return [
            self.rel_name,
            self.num_attrs,
            self.num_recs,
            self.first_blk,
            self.last_blk,
            self.num_slots_per_blk,
        ]


@dataclass
class RelCacheEntry:
    """A cached catalog entry with its location and linear-search position."""

    rel_cat_entry: RelCatEntry
    rec_id: RecId
    search_index: RecId = field(default_factory=RecId)
    dirty: bool = False


class RelCacheTable:
    """Relation catalog entries of the open relations, indexed by relation id."""

    def __init__(self):
        self._entries = [None] * MAX_OPEN

    @staticmethod
    def _check_id(rel_id):
        if not 0 <= rel_id < MAX_OPEN:
            raise OutOfBoundError(f"relation id {rel_id} is out of range")

    def _entry(self, rel_id):
        self._check_id(rel_id)
        entry = self._entries[rel_id]
        if entry is None:
            raise RelationNotOpenError()
        return entry

    def load(self, rel_id, entry):
        """Put a relation's cache entry in a slot."""
        self._check_id(rel_id)
        self._entries[rel_id] = entry

    def remove(self, rel_id):
        """Empty a slot and return the entry it held."""
        entry = self._entry(rel_id)
        self._entries[rel_id] = None
        return entry

    def get(self, rel_id):
        """Return a copy of a relation's catalog entry."""
        return replace(self._entry(rel_id).rel_cat_entry)

    def set(self, rel_id, rel_cat_entry):
        """Replace a relation's catalog entry and mark it for write-back."""
        entry = self._entry(rel_id)
        entry.rel_cat_entry = replace(rel_cat_entry)
        entry.dirty = True

    def search_index(self, rel_id):
        """Return the record where the last linear search stopped."""
        return self._entry(rel_id).search_index

    def set_search_index(self, rel_id, rec_id):
        """Record where a linear search stopped."""
        self._entry(rel_id).search_index = rec_id

    def reset_search_index(self, rel_id):
        """Make the next linear search start from the first record."""
        self.set_search_index(rel_id, RecId())
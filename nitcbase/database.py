"""A database session: the buffer pool, the caches and the open-relation table over a disk."""

from .attrcache import AttrCacheTable
from .blockaccess import BlockAccess
from .bplustree import BPlusTree
from .errors import DatabaseError
from .openreltable import OpenRelTable
from .relcache import RelCacheTable
from .staticbuffer import StaticBuffer


class Database:
    """Wires the storage layers together over a disk whose working copy exists.

    Closing the database writes cached catalog entries and dirty blocks to the
    disk's working copy.
    """

    def __init__(self, disk):
        self.disk = disk
        self.buffer = StaticBuffer(disk)
        self.rel_cache = RelCacheTable()
        self.attr_cache = AttrCacheTable()
        self.bplustree = BPlusTree(self.buffer, self.rel_cache, self.attr_cache)
        self.block_access = BlockAccess(
            self.buffer, self.rel_cache, self.attr_cache, self.bplustree
        )
        self.open_rel_table = OpenRelTable(
            self.buffer, self.rel_cache, self.attr_cache, self.block_access
        )
        try:
            self.open_rel_table.load()
        except DatabaseError:
            # An unformatted disk has no catalogs until it is formatted and reset.
            pass

    def reset(self):
        """Reload the allocation map and catalogs after the disk has been rewritten."""
        self.buffer.reload()
        self.open_rel_table.load()

    def close(self):
        """Close every relation and flush the buffer pool to disk."""
        self.open_rel_table.close_all()
        self.buffer.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
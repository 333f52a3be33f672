"""B+ tree indexes over one attribute of a relation."""

from .blockbuffer import (
    BlockBuffer,
    IndInternal,
    IndLeaf,
    InternalEntry,
    LeafEntry,
    RecBuffer,
    compare_attrs,
    encode_attr,
)
from .constants import (
    ATTRCAT_RELID,
    DISK_BLOCKS,
    MAX_KEYS_INTERNAL,
    MAX_KEYS_LEAF,
    MIDDLE_INDEX_INTERNAL,
    MIDDLE_INDEX_LEAF,
    RELCAT_RELID,
    SLOT_OCCUPIED,
    BlockType,
    IndexId,
    Op,
    RecId,
)
from .errors import (
    DiskFullError,
    InvalidBlockError,
    NoIndexError,
    NotPermittedError,
    OutOfBoundError,
)

# A full leaf plus the new key is split into two halves of this size.
_LEAF_HALF = (MAX_KEYS_LEAF + 1) // 2

_SATISFIES = {
    Op.EQ: lambda cmp: cmp == 0,
    Op.LE: lambda cmp: cmp <= 0,
    Op.LT: lambda cmp: cmp < 0,
    Op.GT: lambda cmp: cmp > 0,
    Op.GE: lambda cmp: cmp >= 0,
    Op.NE: lambda cmp: cmp != 0,
}


def _descends_left(op, cmp):
    if op == Op.GT:
        return cmp > 0
    return cmp >= 0


class BPlusTree:
    """Builds, searches and tears down the B+ tree indexes of open relations."""

    def __init__(self, buffer, rel_cache, attr_cache):
        self.buffer = buffer
        self.rel_cache = rel_cache
        self.attr_cache = attr_cache

    @staticmethod
    def _internal_entries(node):
        head = node.read_header()
        return [node.read_entry(i) for i in range(head.num_entries)]

    @staticmethod
    def _leaf_entries(leaf):
        head = leaf.read_header()
        return [leaf.read_entry(i) for i in range(head.num_entries)]

    def _set_parent(self, block_num, parent):
        block = BlockBuffer(self.buffer, block_num)
        head = block.read_header()
        head.pblock = parent
        block.write_header(head)

    def search(self, rel_id, attr_name, value, op):
        """Return the next record whose attribute satisfies ``op value``, or None.

        Successive calls continue from where the previous one stopped until the
        attribute's search index is reset.
        """
        op = Op(op)
        search_index = self.attr_cache.search_index(rel_id, attr_name)
        attr_cat = self.attr_cache.get(rel_id, attr_name)
        attr_type = attr_cat.attr_type

        if search_index.block == -1 or search_index.index == -1:
            block = attr_cat.root_block
            index = 0
            if block == -1:
                return None
        else:
            block = search_index.block
            index = search_index.index + 1
            head = IndLeaf(self.buffer, block).read_header()
            if index >= head.num_entries:
                block = head.rblock
                index = 0
                if block == -1:
                    return None

        while self.buffer.get_block_type(block) == BlockType.IND_INTERNAL:
            node = IndInternal(self.buffer, block)
            if op in (Op.NE, Op.LT, Op.LE):
                block = node.read_entry(0).lchild
                continue
            entries = self._internal_entries(node)
            chosen = next(
                (
                    entry
                    for entry in entries
                    if _descends_left(op, compare_attrs(entry.attr_val, value, attr_type))
                ),
                None,
            )
            block = chosen.lchild if chosen is not None else entries[-1].rchild

        satisfies = _SATISFIES[op]
        while block != -1:
            leaf = IndLeaf(self.buffer, block)
            head = leaf.read_header()
            for position in range(index, head.num_entries):
                entry = leaf.read_entry(position)
                cmp = compare_attrs(entry.attr_val, value, attr_type)
                if satisfies(cmp):
                    self.attr_cache.set_search_index(
                        rel_id, attr_name, IndexId(block, position)
                    )
                    return RecId(entry.block, entry.slot)
                if op in (Op.EQ, Op.LE, Op.LT) and cmp > 0:
                    return None
            if op != Op.NE:
                break
            block = head.rblock
            index = 0

        return None

    def create(self, rel_id, attr_name):
        """Build an index on an attribute from the records already stored.

        Does nothing if the attribute is already indexed.
        """
        if rel_id in (RELCAT_RELID, ATTRCAT_RELID):
            raise NotPermittedError()

        attr_cat = self.attr_cache.get(rel_id, attr_name)
        if attr_cat.root_block != -1:
            return

        root = IndLeaf.allocate(self.buffer)
        attr_cat.root_block = root.block_num
        self.attr_cache.set(rel_id, attr_name, attr_cat)

        rel_cat = self.rel_cache.get(rel_id)
        block = rel_cat.first_blk
        while block != -1:
            records = RecBuffer(self.buffer, block)
            for slot, state in enumerate(records.read_slot_map()):
                if state == SLOT_OCCUPIED:
                    record = records.read_record(slot)
                    self.insert(rel_id, attr_name, record[attr_cat.offset], RecId(block, slot))
            block = records.read_header().rblock

    def insert(self, rel_id, attr_name, value, rec_id):
        """Add a key pointing at a record to an attribute's index.

        If the disk runs out of space the whole index is dropped and
        DiskFullError is raised.
        """
        attr_cat = self.attr_cache.get(rel_id, attr_name)
        root = attr_cat.root_block
        if root == -1:
            raise NoIndexError()

        leaf_num = self._find_leaf(root, value, attr_cat.attr_type)
        entry = LeafEntry(encode_attr(value), rec_id.block, rec_id.slot)
        try:
            self._insert_into_leaf(rel_id, attr_name, leaf_num, entry)
        except DiskFullError:
            self.destroy(root)
            attr_cat.root_block = -1
            self.attr_cache.set(rel_id, attr_name, attr_cat)
            raise

    def destroy(self, root_block):
        """Release every block of the tree rooted at a block."""
        if not 0 <= root_block < DISK_BLOCKS:
            raise OutOfBoundError(f"block {root_block} is outside the disk")

        block_type = self.buffer.get_block_type(root_block)
        if block_type == BlockType.IND_LEAF:
            IndLeaf(self.buffer, root_block).release()
        elif block_type == BlockType.IND_INTERNAL:
            node = IndInternal(self.buffer, root_block)
            entries = self._internal_entries(node)
            for entry in entries:
                self.destroy(entry.lchild)
            if entries:
                self.destroy(entries[-1].rchild)
            node.release()
        else:
            raise InvalidBlockError(f"block {root_block} is not an index block")

    def _find_leaf(self, root_block, value, attr_type):
        block = root_block
        while self.buffer.get_block_type(block) == BlockType.IND_INTERNAL:
            entries = self._internal_entries(IndInternal(self.buffer, block))
            chosen = next(
                (e for e in entries if compare_attrs(e.attr_val, value, attr_type) >= 0),
                None,
            )
            block = chosen.lchild if chosen is not None else entries[-1].rchild
        if self.buffer.get_block_type(block) != BlockType.IND_LEAF:
            raise InvalidBlockError(f"block {block} is not an index block")
        return block

    def _insert_into_leaf(self, rel_id, attr_name, block_num, new_entry):
        attr_type = self.attr_cache.get(rel_id, attr_name).attr_type
        leaf = IndLeaf(self.buffer, block_num)
        head = leaf.read_header()
        entries = self._leaf_entries(leaf)

        position = next(
            (
                i
                for i, entry in enumerate(entries)
                if compare_attrs(new_entry.attr_val, entry.attr_val, attr_type) < 0
            ),
            len(entries),
        )
        entries.insert(position, new_entry)

        if head.num_entries != MAX_KEYS_LEAF:
            head.num_entries += 1
            leaf.write_header(head)
            for i, entry in enumerate(entries):
                leaf.write_entry(entry, i)
            return

        new_right = self._split_leaf(block_num, entries)
        separator = entries[MIDDLE_INDEX_LEAF].attr_val
        if head.pblock != -1:
            self._insert_into_internal(
                rel_id, attr_name, head.pblock, InternalEntry(block_num, separator, new_right)
            )
        else:
            self._create_new_root(rel_id, attr_name, separator, block_num, new_right)

    def _split_leaf(self, leaf_num, entries):
        right = IndLeaf.allocate(self.buffer)
        left = IndLeaf(self.buffer, leaf_num)

        right_head = right.read_header()
        left_head = left.read_header()

        right_head.num_entries = _LEAF_HALF
        right_head.pblock = left_head.pblock
        right_head.lblock = leaf_num
        right_head.rblock = left_head.rblock
        right.write_header(right_head)

        left_head.num_entries = _LEAF_HALF
        left_head.rblock = right.block_num
        left.write_header(left_head)

        for i, entry in enumerate(entries[:_LEAF_HALF]):
            left.write_entry(entry, i)
        for i, entry in enumerate(entries[_LEAF_HALF : 2 * _LEAF_HALF]):
            right.write_entry(entry, i)

        return right.block_num

    def _insert_into_internal(self, rel_id, attr_name, block_num, new_entry):
        attr_type = self.attr_cache.get(rel_id, attr_name).attr_type
        node = IndInternal(self.buffer, block_num)
        head = node.read_header()
        entries = self._internal_entries(node)

        position = next(
            (
                i
                for i, entry in enumerate(entries)
                if compare_attrs(new_entry.attr_val, entry.attr_val, attr_type) <= 0
            ),
            None,
        )
        if position is None:
            entries.append(new_entry)
        else:
            entries[position].lchild = new_entry.rchild
            entries.insert(position, new_entry)

        if head.num_entries != MAX_KEYS_INTERNAL:
            head.num_entries += 1
            node.write_header(head)
            for i, entry in enumerate(entries):
                node.write_entry(entry, i)
            return

        try:
            new_right = self._split_internal(block_num, entries)
        except DiskFullError:
            self.destroy(new_entry.rchild)
            raise

        separator = entries[MIDDLE_INDEX_INTERNAL].attr_val
        if head.pblock != -1:
            self._insert_into_internal(
                rel_id, attr_name, head.pblock, InternalEntry(block_num, separator, new_right)
            )
        else:
            self._create_new_root(rel_id, attr_name, separator, block_num, new_right)

    def _split_internal(self, block_num, entries):
        right = IndInternal.allocate(self.buffer)
        left = IndInternal(self.buffer, block_num)

        right_head = right.read_header()
        left_head = left.read_header()

        right_head.num_entries = MIDDLE_INDEX_INTERNAL
        right_head.pblock = left_head.pblock
        right.write_header(right_head)

        left_head.num_entries = MIDDLE_INDEX_INTERNAL
        left.write_header(left_head)

        for i, entry in enumerate(entries[:MIDDLE_INDEX_INTERNAL]):
            left.write_entry(entry, i)
        for i, entry in enumerate(entries[MIDDLE_INDEX_INTERNAL + 1 :]):
            right.write_entry(entry, i)

        right_entries = self._internal_entries(right)
        for entry in right_entries:
            self._set_parent(entry.lchild, right.block_num)
        self._set_parent(right_entries[-1].rchild, right.block_num)

        return right.block_num

    def _create_new_root(self, rel_id, attr_name, value, lchild, rchild):
        attr_cat = self.attr_cache.get(rel_id, attr_name)
        try:
            root = IndInternal.allocate(self.buffer)
        except DiskFullError:
            self.destroy(rchild)
            raise

        head = root.read_header()
        head.num_entries = 1
        root.write_header(head)
        root.write_entry(InternalEntry(lchild, value, rchild), 0)

        self._set_parent(lchild, root.block_num)
        self._set_parent(rchild, root.block_num)

        attr_cat.root_block = root.block_num
        self.attr_cache.set(rel_id, attr_name, attr_cat)
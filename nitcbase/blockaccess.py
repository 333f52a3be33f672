"""Record-level access to relations: searching, inserting, renaming and deleting."""

from .blockbuffer import BlockBuffer, HeadInfo, RecBuffer, compare_attrs, decode_attr
from .constants import (
    ATTRCAT_ATTR_NAME_INDEX,
    ATTRCAT_ATTR_RELNAME,
    ATTRCAT_REL_NAME_INDEX,
    ATTRCAT_RELID,
    ATTRCAT_RELNAME,
    ATTRCAT_ROOT_BLOCK_INDEX,
    RELCAT_ATTR_RELNAME,
    RELCAT_FIRST_BLOCK_INDEX,
    RELCAT_NO_ATTRIBUTES_INDEX,
    RELCAT_REL_NAME_INDEX,
    RELCAT_RELID,
    RELCAT_RELNAME,
    SLOT_OCCUPIED,
    SLOT_UNOCCUPIED,
    AttrType,
    BlockType,
    Op,
    RecId,
)
from .errors import (
    AttrCountMismatchError,
    AttributeExistsError,
    AttributeNotExistError,
    DiskFullError,
    IndexBlocksReleased,
    MaxRelationsError,
    NotPermittedError,
    RelationExistsError,
    RelationNotExistError,
)

_SATISFIES = {
    Op.EQ: lambda cmp: cmp == 0,
    Op.LE: lambda cmp: cmp <= 0,
    Op.LT: lambda cmp: cmp < 0,
    Op.GT: lambda cmp: cmp > 0,
    Op.GE: lambda cmp: cmp >= 0,
    Op.NE: lambda cmp: cmp != 0,
}


def _number(field):
    return int(decode_attr(field, AttrType.NUMBER))


class BlockAccess:
    """Operations on the records of open relations and on the catalogs."""

    def __init__(self, buffer, rel_cache, attr_cache, bplustree):
        self.buffer = buffer
        self.rel_cache = rel_cache
        self.attr_cache = attr_cache
        self.bplustree = bplustree

    def _start(self, rel_id):
        prev = self.rel_cache.search_index(rel_id)
        if prev.block == -1 and prev.slot == -1:
            return self.rel_cache.get(rel_id).first_blk, 0
        return prev.block, prev.slot + 1

    def linear_search(self, rel_id, attr_name, value, op):
        """Return the next record id whose attribute satisfies ``op value``, or None.

        The search resumes after the record found by the previous call until
        the relation's search index is reset.
        """
        satisfies = _SATISFIES[Op(op)]
        block, slot = self._start(rel_id)
        attr_cat = self.attr_cache.get(rel_id, attr_name)

        while block != -1:
            records = RecBuffer(self.buffer, block)
            head = records.read_header()
            slot_map = records.read_slot_map()
            for position in range(slot, head.num_slots):
                if slot_map[position] != SLOT_OCCUPIED:
                    continue
                record = records.read_record(position)
                cmp = compare_attrs(record[attr_cat.offset], value, attr_cat.attr_type)
                if satisfies(cmp):
                    found = RecId(block, position)
                    self.rel_cache.set_search_index(rel_id, found)
                    return found
            block = head.rblock
            slot = 0
        return None

    def search(self, rel_id, attr_name, value, op):
        """Return the next matching record as raw fields, or None.

        Uses the attribute's index when it has one and a linear scan otherwise.
        """
        attr_cat = self.attr_cache.get(rel_id, attr_name)
        if attr_cat.root_block == -1:
            rec_id = self.linear_search(rel_id, attr_name, value, op)
        else:
            rec_id = self.bplustree.search(rel_id, attr_name, value, op)
        if rec_id is None:
            return None
        return RecBuffer(self.buffer, rec_id.block).read_record(rec_id.slot)

    def _find_free_slot(self, rel_cat):
        prev = -1
        block = rel_cat.first_blk
        while block != -1:
            records = RecBuffer(self.buffer, block)
            free = records.read_slot_map().find(SLOT_UNOCCUPIED)
            if free != -1:
                return RecId(block, free), prev
            prev = block
            block = records.read_header().rblock
        return None, prev

    def insert(self, rel_id, record):
        """Store a record in the first free slot of a relation and return its id.

        Raises IndexBlocksReleased after storing the record if an index had to
        be dropped for lack of disk space.
        """
        rel_cat = self.rel_cache.get(rel_id)
        num_slots = rel_cat.num_slots_per_blk
        num_attrs = rel_cat.num_attrs
        if len(record) != num_attrs:
            raise AttrCountMismatchError(
                f"record has {len(record)} attributes, relation has {num_attrs}"
            )

        rec_id, prev = self._find_free_slot(rel_cat)
        if rec_id is None:
            if rel_id == RELCAT_RELID:
                raise MaxRelationsError()
            new_block = RecBuffer.allocate(self.buffer)
            new_block.write_header(
                HeadInfo(
                    block_type=BlockType.REC,
                    pblock=-1,
                    lblock=prev,
                    rblock=-1,
                    num_entries=0,
                    num_attrs=num_attrs,
                    num_slots=num_slots,
                )
            )
            new_block.write_slot_map(bytes([SLOT_UNOCCUPIED]) * num_slots)
            if prev != -1:
                prev_block = RecBuffer(self.buffer, prev)
                prev_head = prev_block.read_header()
                prev_head.rblock = new_block.block_num
                prev_block.write_header(prev_head)
            else:
                rel_cat.first_blk = new_block.block_num
            rel_cat.last_blk = new_block.block_num
            rec_id = RecId(new_block.block_num, 0)

        records = RecBuffer(self.buffer, rec_id.block)
        records.write_record(record, rec_id.slot)
        slot_map = records.read_slot_map()
        slot_map[rec_id.slot] = SLOT_OCCUPIED
        records.write_slot_map(slot_map)
        head = records.read_header()
        head.num_entries += 1
        records.write_header(head)

        rel_cat.num_recs += 1
        self.rel_cache.set(rel_id, rel_cat)

        indexes_dropped = False
        for entry in self.attr_cache.entries(rel_id):
            attr_cat = entry.attr_cat_entry
            if attr_cat.root_block == -1:
                continue
            try:
                self.bplustree.insert(
                    rel_id, attr_cat.attr_name, record[attr_cat.offset], rec_id
                )
            except DiskFullError:
                indexes_dropped = True
        if indexes_dropped:
            raise IndexBlocksReleased()
        return rec_id

    def _find_relation(self, rel_name):
        self.rel_cache.reset_search_index(RELCAT_RELID)
        return self.linear_search(RELCAT_RELID, RELCAT_ATTR_RELNAME, rel_name, Op.EQ)

    def rename_relation(self, old_name, new_name):
        """Rename a relation in the relation and attribute catalogs."""
        if self._find_relation(new_name) is not None:
            raise RelationExistsError()
        found = self._find_relation(old_name)
        if found is None:
            raise RelationNotExistError()

        relcat_block = RecBuffer(self.buffer, found.block)
        record = relcat_block.read_record(found.slot)
        record[RELCAT_REL_NAME_INDEX] = new_name
        relcat_block.write_record(record, found.slot)

        self.rel_cache.reset_search_index(ATTRCAT_RELID)
        for _ in range(_number(record[RELCAT_NO_ATTRIBUTES_INDEX])):
            attr_id = self.linear_search(ATTRCAT_RELID, ATTRCAT_ATTR_RELNAME, old_name, Op.EQ)
            if attr_id is None:
                break
            attr_block = RecBuffer(self.buffer, attr_id.block)
            attr_record = attr_block.read_record(attr_id.slot)
            attr_record[ATTRCAT_REL_NAME_INDEX] = new_name
            attr_block.write_record(attr_record, attr_id.slot)

    def rename_attribute(self, rel_name, old_name, new_name):
        """Rename an attribute of a relation in the attribute catalog."""
        if self._find_relation(rel_name) is None:
            raise RelationNotExistError()

        self.rel_cache.reset_search_index(ATTRCAT_RELID)
        target = None
        while True:
            attr_id = self.linear_search(ATTRCAT_RELID, ATTRCAT_ATTR_RELNAME, rel_name, Op.EQ)
            if attr_id is None:
                break
            record = RecBuffer(self.buffer, attr_id.block).read_record(attr_id.slot)
            name = decode_attr(record[ATTRCAT_ATTR_NAME_INDEX], AttrType.STRING)
            if name == new_name:
                raise AttributeExistsError()
            if name == old_name:
                target = attr_id

        if target is None:
            raise AttributeNotExistError()

        attr_block = RecBuffer(self.buffer, target.block)
        record = attr_block.read_record(target.slot)
        record[ATTRCAT_ATTR_NAME_INDEX] = new_name
        attr_block.write_record(record, target.slot)

    def _release_chain(self, block):
        while block != -1:
            current = BlockBuffer(self.buffer, block)
            block = current.read_header().rblock
            current.release()

    def _unlink_attrcat_block(self, attr_block, head):
        if head.lblock != -1:
            left = RecBuffer(self.buffer, head.lblock)
            left_head = left.read_header()
            left_head.rblock = head.rblock
            left.write_header(left_head)
        if head.rblock != -1:
            right = RecBuffer(self.buffer, head.rblock)
            right_head = right.read_header()
            right_head.lblock = head.lblock
            right.write_header(right_head)
            resume = RecId(head.rblock, -1)
        else:
            attrcat = self.rel_cache.get(ATTRCAT_RELID)
            attrcat.last_blk = head.lblock
            self.rel_cache.set(ATTRCAT_RELID, attrcat)
            resume = RecId()
        attr_block.release()
        # The scan cannot continue inside a released block.
        self.rel_cache.set_search_index(ATTRCAT_RELID, resume)

    def delete_relation(self, rel_name):
        """Remove a relation, its records, its indexes and its catalog entries."""
        if rel_name in (RELCAT_RELNAME, ATTRCAT_RELNAME):
            raise NotPermittedError()

        found = self._find_relation(rel_name)
        if found is None:
            raise RelationNotExistError()

        relcat_block = RecBuffer(self.buffer, found.block)
        record = relcat_block.read_record(found.slot)
        self._release_chain(_number(record[RELCAT_FIRST_BLOCK_INDEX]))

        self.rel_cache.reset_search_index(ATTRCAT_RELID)
        detected = 0
        while True:
            attr_id = self.linear_search(ATTRCAT_RELID, ATTRCAT_ATTR_RELNAME, rel_name, Op.EQ)
            if attr_id is None:
                break
            detected += 1

            attr_block = RecBuffer(self.buffer, attr_id.block)
            head = attr_block.read_header()
            attr_record = attr_block.read_record(attr_id.slot)
            root_block = _number(attr_record[ATTRCAT_ROOT_BLOCK_INDEX])

            slot_map = attr_block.read_slot_map()
            slot_map[attr_id.slot] = SLOT_UNOCCUPIED
            attr_block.write_slot_map(slot_map)
            head.num_entries -= 1
            attr_block.write_header(head)

            if head.num_entries == 0:
                self._unlink_attrcat_block(attr_block, head)

            if root_block != -1:
                self.bplustree.destroy(root_block)

        relcat_head = relcat_block.read_header()
        relcat_head.num_entries -= 1
        relcat_block.write_header(relcat_head)
        slot_map = relcat_block.read_slot_map()
        slot_map[found.slot] = SLOT_UNOCCUPIED
        relcat_block.write_slot_map(slot_map)

        relcat = self.rel_cache.get(RELCAT_RELID)
        relcat.num_recs -= 1
        self.rel_cache.set(RELCAT_RELID, relcat)

        attrcat = self.rel_cache.get(ATTRCAT_RELID)
        attrcat.num_recs -= detected
        self.rel_cache.set(ATTRCAT_RELID, attrcat)

    def project(self, rel_id):
        """Return the next record of a relation as raw fields, or None at the end."""
        block, slot = self._start(rel_id)
        while block != -1:
            records = RecBuffer(self.buffer, block)
            head = records.read_header()
            slot_map = records.read_slot_map()
            position = next(
                (s for s in range(slot, head.num_slots) if slot_map[s] == SLOT_OCCUPIED),
                None,
            )
            if position is not None:
                self.rel_cache.set_search_index(rel_id, RecId(block, position))
                return records.read_record(position)
            block = head.rblock
            slot = 0
        return None
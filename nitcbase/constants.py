"""Disk layout, limits, enumerations and record identifiers shared by the engine."""

from dataclasses import dataclass
from enum import IntEnum

DISK_PATH = "../Disk/disk"
DISK_RUN_COPY_PATH = "../Disk/disk_run_copy"
FILES_PATH = "../Files/"
INPUT_FILES_PATH = "../Files/Input_Files/"
OUTPUT_FILES_PATH = "../Files/Output_Files/"
BATCH_FILES_PATH = "../Files/Batch_Execution_Files/"

BLOCK_SIZE = 2048
ATTR_SIZE = 16
DISK_SIZE = 16 * 1024 * 1024
HEADER_SIZE = 32
LCHILD_SIZE = 4
RCHILD_SIZE = 4
PBLOCK_SIZE = 4
BLOCKNUM_SIZE = 4
SLOTNUM_SIZE = 4
INDEX_BLOCK_UNUSED_BYTES = 8
INTERNAL_ENTRY_SIZE = 24
LEAF_ENTRY_SIZE = 32

DISK_BLOCKS = 8192
BUFFER_CAPACITY = 32
MAX_OPEN = 12
BLOCK_ALLOCATION_MAP_SIZE = 4

RELCAT_NO_ATTRS = 6
ATTRCAT_NO_ATTRS = 6

RELCAT_BLOCK = 4
ATTRCAT_BLOCK = 5

NO_OF_ATTRS_RELCAT_ATTRCAT = 6
SLOTMAP_SIZE_RELCAT_ATTRCAT = 20

SLOT_OCCUPIED = ord("1")
SLOT_UNOCCUPIED = ord("0")

RELCAT_RELID = 0
ATTRCAT_RELID = 1

RELCAT_SLOTNUM_FOR_RELCAT = 0
RELCAT_SLOTNUM_FOR_ATTRCAT = 1

INVALID_BLOCKNUM = -1

# Field positions in a relation catalog record.
RELCAT_REL_NAME_INDEX = 0
RELCAT_NO_ATTRIBUTES_INDEX = 1
RELCAT_NO_RECORDS_INDEX = 2
RELCAT_FIRST_BLOCK_INDEX = 3
RELCAT_LAST_BLOCK_INDEX = 4
RELCAT_NO_SLOTS_PER_BLOCK_INDEX = 5

# Field positions in an attribute catalog record.
ATTRCAT_REL_NAME_INDEX = 0
ATTRCAT_ATTR_NAME_INDEX = 1
ATTRCAT_ATTR_TYPE_INDEX = 2
ATTRCAT_PRIMARY_FLAG_INDEX = 3
ATTRCAT_ROOT_BLOCK_INDEX = 4
ATTRCAT_OFFSET_INDEX = 5

TEMP = ".temp"

MAX_KEYS_INTERNAL = 100
MIDDLE_INDEX_INTERNAL = 50
MAX_KEYS_LEAF = 63
MIDDLE_INDEX_LEAF = 31

RELCAT_RELNAME = "RELATIONCAT"
ATTRCAT_RELNAME = "ATTRIBUTECAT"

RELCAT_ATTR_RELNAME = "RelName"
RELCAT_ATTR_NO_ATTRIBUTES = "#Attributes"
RELCAT_ATTR_NO_RECORDS = "#Records"
RELCAT_ATTR_FIRST_BLOCK = "FirstBlock"
RELCAT_ATTR_LAST_BLOCK = "LastBlock"
RELCAT_ATTR_NO_SLOTS = "#Slots"

ATTRCAT_ATTR_RELNAME = "RelName"
ATTRCAT_ATTR_ATTRIBUTE_NAME = "AttributeName"
ATTRCAT_ATTR_ATTRIBUTE_TYPE = "AttributeType"
ATTRCAT_ATTR_PRIMARY_FLAG = "PrimaryFlag"
ATTRCAT_ATTR_ROOT_BLOCK = "RootBlock"
ATTRCAT_ATTR_OFFSET = "Offset"


class AttrType(IntEnum):
    """Type of an attribute value."""

    NUMBER = 0
    STRING = 1


class Op(IntEnum):
    """Comparison operators used in searches."""

    EQ = 0
    LE = 1
    LT = 2
    GE = 3
    GT = 4
    NE = 5


class BlockType(IntEnum):
    """Kind of a disk block, as kept in the block allocation map."""

    REC = 0
    IND_INTERNAL = 1
    IND_LEAF = 2
    UNUSED = 3
    BMAP = 4


@dataclass(frozen=True)
class RecId:
    """A record, located by block number and slot number."""

    block: int = -1
    slot: int = -1


@dataclass(frozen=True)
class IndexId:
    """An index entry, located by block number and entry number."""

    block: int = -1
    index: int = -1
"""Exceptions raised by the database engine."""


class DatabaseError(Exception):
    """A database operation failed."""

    message = "Command Failed"

    def __init__(self, message=None):
        super().__init__(self.message if message is None else message)


class OutOfBoundError(DatabaseError):
    message = "Out of bound"


class FreeSlotError(DatabaseError):
    message = "Free slot"


class NoIndexError(DatabaseError):
    message = "No index"


class DiskFullError(DatabaseError):
    message = "Insufficient space in disk"


class InvalidBlockError(DatabaseError):
    message = "Invalid block"


class RelationNotExistError(DatabaseError):
    message = "Relation does not exist"


class RelationExistsError(DatabaseError):
    message = "Relation already exists"


class AttributeNotExistError(DatabaseError):
    message = "Attribute does not exist"


class AttributeExistsError(DatabaseError):
    message = "Attribute already exists"


class CacheFullError(DatabaseError):
    message = "Cache is full"


class RelationNotOpenError(DatabaseError):
    message = "Relation is not open"


class AttrCountMismatchError(DatabaseError):
    message = "Mismatch in number of attributes"


class DuplicateAttributeError(DatabaseError):
    message = "Duplicate attributes found"


class RelationOpenError(DatabaseError):
    message = "Relation is open"


class AttrTypeMismatchError(DatabaseError):
    message = "Mismatch in attribute type"


class InvalidArgumentError(DatabaseError):
    message = "Invalid index or argument"


class MaxRelationsError(DatabaseError):
    message = "Maximum number of relations already present"


class MaxAttrsError(DatabaseError):
    message = "Maximum number of attributes allowed for a relation is 125"


class NotPermittedError(DatabaseError):
    message = "This operation is not permitted"


class IndexBlocksReleased(DatabaseError):
    """The operation went through, but some indexes were dropped for lack of space."""

    message = "Operation succeeded, but some indexes had to be dropped"
"""Texts shown to the user by the command interface."""

from .errors import DatabaseError, IndexBlocksReleased

_HELP = (
    "CREATE TABLE tablename(attr1_name attr1_type ,attr2_name attr2_type....); \n\t -create a relation with given attribute names\n \n",
    "DROP TABLE tablename;\n\t-delete the relation\n  \n",
    "OPEN TABLE tablename;\n\t-open the relation \n\n",
    "CLOSE TABLE tablename;\n\t-close the relation \n \n",
    "CREATE INDEX ON tablename.attributename;\n\t-create an index on a given attribute. \n\n",
    "DROP INDEX ON tablename.attributename; \n\t-delete the index. \n\n",
    "ALTER TABLE RENAME tablename TO new_tablename;\n\t-rename an existing relation to a given new name. \n\n",
    "ALTER TABLE RENAME tablename COLUMN column_name TO new_column_name;\n\t-rename an attribute of an existing relation.\n\n",
    "INSERT INTO tablename VALUES ( value1,value2,value3,... );\n\t-insert a single record into the given relation. \n\n",
    "INSERT INTO tablename VALUES FROM filepath; \n\t-insert multiple records from a csv file \n\n",
    "SELECT * FROM source_relation INTO target_relation; \n\t-creates a relation with the same attributes and records as of source relation\n\n",
    "SELECT Attribute1,Attribute2,....FROM source_relation INTO target_relation; \n\t-creates a relation with attributes specified and all records\n\n",
    "SELECT * FROM source_relation INTO target_relation WHERE attrname OP value; \n\t-retrieve records based on a condition and insert them into a target relation\n\n",
    "SELECT Attribute1,Attribute2,....FROM source_relation INTO target_relation;\n\t-creates a relation with the attributes specified and inserts those records which satisfy the given condition.\n\n",
    "SELECT * FROM source_relation1 JOIN source_relation2 INTO target_relation WHERE source_relation1.attribute1 = source_relation2.attribute2; \n\t-creates a new relation with by equi-join of both the source relations\n\n",
    "SELECT Attribute1,Attribute2,.. FROM source_relation1 JOIN source_relation2 INTO target_relation WHERE source_relation1.attribute1 = source_relation2.attribute2; \n\t-creates a new relation by equi-join of both the source relations with the attributes specified \n\n",
    "echo <any message> \n\t  -echo back the given string. \n\n",
    "run <filename> \n\t  -run commands from an input file in sequence. \n\n",
    "PRINT TABLE; \n\t-print the table\n\n",
    "ls; \n\t-list all tables\n\n",
    "fdisk; \n\t-formate disk\n\n",
    "exit \n\t-Exit the interface\n\n",
)


def error_message(error):
    """Return the line shown for a failed command, given an exception or its class."""
    cls = error if isinstance(error, type) else type(error)
    if not issubclass(cls, DatabaseError):
        cls = DatabaseError
    prefix = "Warning" if issubclass(cls, IndexBlocksReleased) else "Error"
    return f"{prefix}: {cls.message}"


def help_text():
    """Return the command summary printed by HELP."""
    return "".join(_HELP)
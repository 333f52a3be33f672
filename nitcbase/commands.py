"""The command language: one pattern per command, matched case-insensitively."""

import re
from enum import Enum

_NAME = r"[A-Za-z0-9_-]+"
_ATTR = r"[#A-Za-z0-9_-]+"
_ATTR_LIST = rf"((?:{_ATTR}\s*,\s*)*(?:{_ATTR}))"
_OPERATOR = r"(<|<=|>|>=|=|!=)"
_VALUE = r"([A-Za-z0-9_-]+|([0-9]+(\.)[0-9]+))"


class Command(Enum):
    """Every command, in the order in which commands are tried."""

    HELP = r"\s*HELP\s*;?"
    EXIT = r"\s*EXIT\s*;?"
    ECHO = r"\s*ECHO\s*([a-zA-Z0-9 _,()'?:+*.-]*)\s*;?"
    RUN = r"\s*RUN\s+([a-zA-Z0-9_/.-]+)\s*;?"
    OPEN_TABLE = rf"\s*OPEN\s+TABLE\s+({_NAME})\s*;?"
    CLOSE_TABLE = rf"\s*CLOSE\s+TABLE\s+({_NAME})\s*;?"
    CREATE_TABLE = (
        rf"\s*CREATE\s+TABLE\s+({_NAME})\s*\(\s*"
        rf"((?:{_ATTR}\s+(?:STR|NUM)\s*,\s*)*(?:{_ATTR}\s+(?:STR|NUM)))\s*\)\s*;?"
    )
    DROP_TABLE = rf"\s*DROP\s+TABLE\s+({_NAME})\s*;?"
    CREATE_INDEX = rf"\s*CREATE\s+INDEX\s+ON\s+({_NAME})\s*\.\s*({_ATTR})\s*;?"
    DROP_INDEX = rf"\s*DROP\s+INDEX\s+ON\s+({_NAME})\s*\.\s*({_ATTR})\s*;?"
    RENAME_TABLE = rf"\s*ALTER\s+TABLE\s+RENAME\s+({_NAME})\s+TO\s+({_NAME})\s*;?"
    RENAME_COLUMN = (
        rf"\s*ALTER\s+TABLE\s+RENAME\s+({_NAME})\s+COLUMN\s+({_ATTR})\s+TO\s+({_ATTR})\s*;?"
    )
    INSERT_SINGLE = (
        rf"\s*INSERT\s+INTO\s+({_NAME})\s+VALUES\s*\(\s*"
        r"((?:(?:[A-Za-z0-9_-]+|[0-9]+\.[0-9]+)\s*,\s*)*(?:[A-Za-z0-9_-]+|[0-9]+\.[0-9]+))"
        r"\s*\)\s*;?"
    )
    INSERT_MULTIPLE = rf"\s*INSERT\s+INTO\s+({_NAME})\s+VALUES\s+FROM\s+([a-zA-Z0-9_-]+\.csv)\s*;?"
    SELECT_FROM = rf"\s*SELECT\s+\*\s+FROM\s+({_NAME})\s+INTO\s+({_NAME})\s*;?"
    SELECT_FROM_WHERE = (
        rf"\s*SELECT\s+\*\s+FROM\s+({_NAME})\s+INTO\s+({_NAME})\s+WHERE\s+({_ATTR})"
        rf"\s*{_OPERATOR}\s*{_VALUE}\s*;?"
    )
    SELECT_ATTR_FROM = rf"\s*SELECT\s+{_ATTR_LIST}\s+FROM\s+({_NAME})\s+INTO\s+({_NAME})\s*;?"
    SELECT_ATTR_FROM_WHERE = (
        rf"\s*SELECT\s+{_ATTR_LIST}\s+FROM\s+({_NAME})\s+INTO\s+({_NAME})\s+WHERE\s+({_ATTR})"
        rf"\s*{_OPERATOR}\s*{_VALUE}\s*;?"
    )
    SELECT_FROM_JOIN = (
        rf"\s*SELECT\s+\*\s+FROM\s+({_NAME})\s+JOIN\s+({_NAME})\s+INTO\s+({_NAME})\s+WHERE\s+"
        rf"({_NAME})\s*\.({_ATTR})\s*=\s*({_NAME})\s*\.({_ATTR})\s*;?"
    )
    SELECT_ATTR_FROM_JOIN = (
        rf"\s*SELECT\s+{_ATTR_LIST}\s+FROM\s+({_NAME})\s+JOIN\s+({_NAME})\s+INTO\s+({_NAME})"
        rf"\s+WHERE\s+({_NAME})\s*\.({_ATTR})\s*=\s*({_NAME})\s*\.({_ATTR})\s*;?"
    )
    PRINT_TABLE = rf"\s*PRINT\s+TABLE\s+({_NAME})\s*;?"
    LIST_ALL = r"\s*ls\s*;?"
    FORMAT_DISK = r"\s*fdisk\s*;?"

    def __init__(self, pattern):
        self.regex = re.compile(pattern, re.IGNORECASE)


def match_command(command):
    """Return the first command that matches the whole text with its match, or None."""
    for kind in Command:
        match = kind.regex.fullmatch(command)
        if match is not None:
            return kind, match
    return None
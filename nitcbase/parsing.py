"""Small helpers for turning command text into arguments."""

import re
import sys

from .constants import ATTR_SIZE, Op

_SEPARATOR = re.compile(r"\s*,\s*|\s+")

_OPERATORS = {
    "=": Op.EQ,
    "<": Op.LT,
    "<=": Op.LE,
    ">": Op.GT,
    ">=": Op.GE,
    "!=": Op.NE,
}


def extract_tokens(text):
    """Split text on commas and whitespace.

    A leading separator yields an empty first token; a trailing one yields nothing.
    """
    tokens = _SEPARATOR.split(text)
    if tokens and tokens[-1] == "":
        tokens.pop()
    return tokens


def parse_operator(text):
    """Return the comparison operator written as text; unknown text means equality."""
    return _OPERATORS.get(text, Op.EQ)


def truncate_name(name, out=None):
    """Cut a name to the length an attribute field holds, warning when it was too long."""
    truncated = name[: ATTR_SIZE - 1]
    if len(name) >= ATTR_SIZE:
        stream = sys.stdout if out is None else out
        stream.write(f"(warning: '{name}' truncated to '{truncated}')\n")
    return truncated
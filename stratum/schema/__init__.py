"""
Stratum Schema

Declares every recognized configuration key, its type, default and
visibility class.
"""

from .declaration import KeyDeclaration, SchemaDeclaration, load_declaration
from .entry import ABSENT, Path, SchemaEntry, ValueType, Visibility, format_path, parse_path
from .registry import SchemaRegistry

__all__ = [
    "ABSENT",
    "Path",
    "SchemaEntry",
    "ValueType",
    "Visibility",
    "format_path",
    "parse_path",
    "SchemaRegistry",
    "KeyDeclaration",
    "SchemaDeclaration",
    "load_declaration",
]

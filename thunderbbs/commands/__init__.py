"""ThunderBBS Commands Module - Input parsing and command dispatch."""

from .dispatcher import CommandDispatcher
from .parser import ParsedCommand, parse, split_fields, split_separator

__all__ = [
    "CommandDispatcher",
    "ParsedCommand",
    "parse",
    "split_fields",
    "split_separator",
]

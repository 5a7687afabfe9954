"""
ThunderBBS Command Parser

Splits an input line into an upper-case command and whitespace-separated
arguments. Commands that carry free text re-slice the raw line instead of
joining the generic argument list back together.
"""

from dataclasses import dataclass, field
from typing import Optional

# Separates a short structured prefix from free text, e.g.
#   SENDMAIL bob Lunch plans /// See you at noon
SEPARATOR = "///"


@dataclass
class ParsedCommand:
    """One parsed input line."""
    command: str
    args: list[str] = field(default_factory=list)
    raw: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.command

    def rest(self, skip: int = 0) -> str:
        """
        Raw text after the command word and `skip` further fields.

        Internal spacing of the remaining text is preserved.
        """
        _, remainder = split_fields(self.raw, skip + 1)
        return remainder


def parse(line: Optional[str]) -> ParsedCommand:
    """Parse a raw input line. Blank input gives an empty command."""
    if not line or not line.strip():
        return ParsedCommand(command="", args=[], raw="")

    raw = line.strip()
    parts = raw.split()
    return ParsedCommand(command=parts[0].upper(), args=parts[1:], raw=raw)


def split_fields(text: str, count: int) -> tuple[list[str], str]:
    """
    Split off `count` leading whitespace-delimited fields.

    Returns:
        (fields, remainder) - fewer than `count` fields when the text runs
        out; remainder is stripped but otherwise untouched
    """
    parts = text.strip().split(maxsplit=count)
    if len(parts) <= count:
        return parts, ""
    return parts[:count], parts[count].strip()


def split_separator(text: str, separator: str = SEPARATOR) -> tuple[str, Optional[str]]:
    """
    Split text at the first separator.

    Returns:
        (before, after) both stripped; after is None when the separator
        is absent
    """
    before, found, after = text.partition(separator)
    if not found:
        return text.strip(), None
    return before.strip(), after.strip()

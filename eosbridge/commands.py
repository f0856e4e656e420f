"""
Command parsing for EOS show-control strings.

The console sends short ASCII strings, usually CRLF-terminated:

    SCN,3      -> IndexedScene(3)   select row 3 of the scene data source
    SCENE      -> NamedScript       pass-through script names, only if
    TOP           registered

Anything else parses to Invalid. Parsing is pure: no I/O, no logging.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from .registry import ScriptRegistry

SCENE_KEYWORD = "SCN"
SEPARATOR = ","
TERMINATORS = ("\r\n", "\n", "\r")

REASON_MISSING = "missing value"
REASON_NOT_INT = "non-integer value"
REASON_COMMA_FORM = "unrecognized comma form"
REASON_UNKNOWN = "unrecognized command"


@dataclass(frozen=True)
class IndexedScene:
    index: int


@dataclass(frozen=True)
class NamedScript:
    name: str


@dataclass(frozen=True)
class Invalid:
    reason: str
    text: str = ""

    @property
    def is_malformed(self) -> bool:
        """True for a broken SCN form; False for plain noise we just ignore."""
        return self.reason in (REASON_MISSING, REASON_NOT_INT)


ParsedCommand = Union[IndexedScene, NamedScript, Invalid]


def decode_datagram(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def strip_terminator(text: str) -> str:
    """Drop one trailing line terminator, if present."""
    for term in TERMINATORS:
        if text.endswith(term):
            return text[: -len(term)]
    return text


def parse_command(text: str, registry: ScriptRegistry) -> ParsedCommand:
    txt = strip_terminator(text)

    if SEPARATOR in txt:
        prefix, value = txt.split(SEPARATOR, 1)
        if prefix != SCENE_KEYWORD:
            return Invalid(REASON_COMMA_FORM, txt)
        value = strip_terminator(value)
        if not value:
            return Invalid(REASON_MISSING, txt)
        # ASCII digits only: no sign, no whitespace, no "1_000"
        if not (value.isascii() and value.isdigit()):
            return Invalid(REASON_NOT_INT, txt)
        return IndexedScene(int(value))

    if registry.contains(txt):
        return NamedScript(txt)
    return Invalid(REASON_UNKNOWN, txt)

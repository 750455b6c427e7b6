"""Wire-level primitives of the uSMU text protocol.

The uSMU speaks plain ASCII, one command per line terminated by `\\n`. Replies
are single lines, with comma separated fields where more than one value is
returned. This module owns the two numeric contracts of that protocol:

- Floats are written as the shortest positional decimal that reads back to
  the identical single-precision value. The finest resolution of the device
  is 10 nA, so fixed-decimal formatting would silently lose data.
- Replies are parsed left to right with a `Reader` cursor. Literals must
  match exactly (case-sensitive) and a decoded reply must consume its whole
  line.

Commands and responses are described declaratively (see
`usmu.protocol.commands` and `usmu.protocol.responses`) as sequences of
literal strings and `Field`s; `encode_template` and `decode_grammar` are the
generic routines walking those descriptions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

import numpy as np

from usmu.types.errors import (
    MalformedReplyError,
    ProtocolError,
    TrailingDataError,
    UnexpectedTokenError,
)
from usmu.types.units import Current, Voltage
from usmu.util.defaults import LINE_TERMINATOR

_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_UNSIGNED_RE = re.compile(r"\+?\d+")

# how much of the remaining input to quote in error messages
_CONTEXT_CHARS = 32


def format_float(value: float) -> str:
    """Format a value as the shortest round-trip decimal of its float32.

    Never uses exponent notation, and integral values carry no trailing dot
    (`1`, `-0.5`, `0.000000001`).
    """
    return np.format_float_positional(np.float32(value), unique=True, trim="-")


def parse_float(text: str) -> np.float32:
    """Parse a complete string as a float32."""
    reader = Reader(text)
    value = reader.read_float()
    reader.check_empty()
    return value


def format_unsigned(value: int) -> str:
    return str(int(value))


class Reader:
    """Cursor over a single reply line (without its terminator)."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def remaining(self) -> str:
        return self.text[self.pos :]

    def _context(self) -> str:
        return self.remaining[:_CONTEXT_CHARS]

    def match_literal(self, literal: str) -> None:
        if not self.text.startswith(literal, self.pos):
            found = self.remaining[: max(len(literal), 1)]
            raise UnexpectedTokenError(literal, found)
        self.pos += len(literal)

    def read_float(self) -> np.float32:
        match = _FLOAT_RE.match(self.text, self.pos)
        if match is None:
            raise MalformedReplyError(f"Expected a float, found {self._context()!r}")
        token = match.group()
        value = np.float32(float(token))
        if not np.isfinite(value):
            raise MalformedReplyError(f"Float out of single-precision range: {token}")
        self.pos = match.end()
        return value

    def read_unsigned(self, bits: int) -> int:
        match = _UNSIGNED_RE.match(self.text, self.pos)
        if match is None:
            raise MalformedReplyError(
                f"Expected an unsigned integer, found {self._context()!r}"
            )
        value = int(match.group())
        if value >= 1 << bits:
            raise MalformedReplyError(
                f"Value {value} does not fit an unsigned {bits} bit integer"
            )
        self.pos = match.end()
        return value

    def check_empty(self) -> None:
        if self.pos != len(self.text):
            raise TrailingDataError(self.remaining)


# =============================================================================
# declarative field descriptions
# =============================================================================


@dataclass(frozen=True)
class FieldCodec:
    """How one typed value is written to and read from the wire."""

    name: str
    format: Callable[[Any], str]
    read: Callable[[Reader], Any]


VOLT = FieldCodec(
    "volt",
    lambda v: format_float(v.to("V")),
    lambda r: Voltage(r.read_float(), "V"),
)
MILLIAMPERE = FieldCodec(
    "milliampere",
    lambda c: format_float(c.to("mA")),
    lambda r: Current(r.read_float(), "mA"),
)
AMPERE = FieldCodec(
    "ampere",
    lambda c: format_float(c.to("A")),
    lambda r: Current(r.read_float(), "A"),
)
FLOAT32 = FieldCodec("f32", format_float, lambda r: r.read_float())
U8 = FieldCodec("u8", format_unsigned, lambda r: r.read_unsigned(8))
U16 = FieldCodec("u16", format_unsigned, lambda r: r.read_unsigned(16))
U32 = FieldCodec("u32", format_unsigned, lambda r: r.read_unsigned(32))


@dataclass(frozen=True)
class Field:
    """A named, typed slot in a command template or reply grammar."""

    name: str
    codec: FieldCodec


Template = Sequence[Union[str, Field]]


def encode_template(obj: Any, template: Template) -> str:
    """Render `template`, taking field values from attributes of `obj`."""
    parts = []
    for token in template:
        if isinstance(token, str):
            parts.append(token)
        else:
            parts.append(token.codec.format(getattr(obj, token.name)))
    line = "".join(parts)
    if not line.isascii() or LINE_TERMINATOR in line or "\r" in line:
        raise ProtocolError(f"Encoded command is not a single ASCII line: {line!r}")
    return line


def decode_grammar(grammar: Template, line: str) -> dict[str, Any]:
    """Parse `line` against `grammar`, returning the decoded field values.

    The whole line must be consumed.
    """
    reader = Reader(line)
    values = {}
    for token in grammar:
        if isinstance(token, str):
            reader.match_literal(token)
        else:
            values[token.name] = token.codec.read(reader)
    reader.check_empty()
    return values

"""Struct tag parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..errors import MalformedAnnotation

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

_QUOTE_ESCAPES = {value: "\\" + key for key, value in _SIMPLE_ESCAPES.items()}

_HEX_WIDTHS = {"x": 2, "u": 4, "U": 8}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OCTAL_DIGITS = frozenset("01234567")


@dataclass(frozen=True)
class StructTag:
    """A single ``name:"value"`` pair from a struct tag."""

    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}:{_quote(self.value)}"


class StructTags(List[StructTag]):
    """Ordered struct tag entries; duplicate names are retained."""

    def has(self, name: str) -> bool:
        return any(tag.name == name for tag in self)

    def get(self, name: str) -> Optional[StructTag]:
        for tag in self:
            if tag.name == name:
                return tag
        return None

    def __str__(self) -> str:
        return "`" + " ".join(str(tag) for tag in self) + "`"


def parse_struct_tags(tag: str) -> StructTags:
    """Return the entries of a struct tag in the order they appear.

    Parsing stops quietly at the first syntax anomaly (a missing ``:"`` after
    the name, or an unterminated value) and returns the entries read so far.
    Only a value that cannot be unescaped is an error.

    Raises:
      MalformedAnnotation: If a quoted value holds an invalid escape sequence.
    """
    raw = tag
    tags = StructTags()
    while tag:
        # Skip leading space.
        i = 0
        while i < len(tag) and tag[i] == " ":
            i += 1
        tag = tag[i:]
        if not tag:
            break

        # Scan to colon. A space, a quote or a control character ends the name.
        i = 0
        while i < len(tag) and tag[i] > " " and tag[i] not in ':"\x7f':
            i += 1
        if i == 0 or i + 1 >= len(tag) or tag[i] != ":" or tag[i + 1] != '"':
            break
        name = tag[:i]
        tag = tag[i + 1 :]

        # Scan quoted string to find value.
        i = 1
        while i < len(tag) and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= len(tag):
            break
        quoted = tag[: i + 1]
        tag = tag[i + 1 :]

        try:
            value = unquote(quoted)
        except ValueError as exc:
            raise MalformedAnnotation(raw, str(exc)) from exc
        tags.append(StructTag(name=name, value=value))
    return tags


def unquote(quoted: str) -> str:
    """Interpret a double-quoted Go string literal."""
    if len(quoted) < 2 or quoted[0] != '"' or quoted[-1] != '"':
        raise ValueError(f"invalid quoted string {quoted!r}")
    body = quoted[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\n" or ch == '"':
            raise ValueError(f"invalid character {ch!r} in quoted string")
        if ch != "\\":
            out.extend(ch.encode("utf-8"))
            i += 1
            continue
        if i + 1 >= len(body):
            raise ValueError("trailing backslash in quoted string")
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.extend(_SIMPLE_ESCAPES[esc].encode("utf-8"))
            i += 2
        elif esc in _HEX_WIDTHS:
            width = _HEX_WIDTHS[esc]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or not set(digits) <= _HEX_DIGITS:
                raise ValueError(f"invalid escape \\{esc}{digits}")
            code = int(digits, 16)
            if esc == "x":
                out.append(code)
            else:
                if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                    raise ValueError(f"invalid code point \\{esc}{digits}")
                out.extend(chr(code).encode("utf-8"))
            i += 2 + width
        elif esc in _OCTAL_DIGITS:
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or not set(digits) <= _OCTAL_DIGITS or int(digits, 8) > 0xFF:
                raise ValueError(f"invalid octal escape \\{digits}")
            out.append(int(digits, 8))
            i += 4
        else:
            raise ValueError(f"unknown escape sequence \\{esc}")
    return out.decode("utf-8", errors="surrogateescape")


def _quote(value: str) -> str:
    """Quote ``value`` the way Go's ``strconv.Quote`` does."""
    out: List[str] = []
    for ch in value:
        code = ord(ch)
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif 0xDC80 <= code <= 0xDCFF:
            # Undecodable byte kept by surrogateescape.
            out.append(f"\\x{code - 0xDC00:02x}")
        elif ch.isprintable():
            out.append(ch)
        elif code < 0x80:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    return '"' + "".join(out) + '"'


__all__ = ["StructTag", "StructTags", "parse_struct_tags", "unquote"]

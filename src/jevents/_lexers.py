"""
Lexical helpers shared by the cursor and the grammar driver.

Byte classification, JSON string unescaping and numeric literal conversion.
Nothing here knows about line or position tracking: failures are raised as
plain ``ValueError`` and the caller attaches the location.
"""

import math
import re
from collections.abc import Callable
from typing import Any
from typing import TypeAlias

from ._profile import ProfileContext

Byte: TypeAlias = int

EOF: Byte = -1

# Structural bytes
LBRACE = ord("{")
RBRACE = ord("}")
LBRACKET = ord("[")
RBRACKET = ord("]")
COLON = ord(":")
COMMA = ord(",")
QUOTE = ord('"')
BACKSLASH = ord("\\")
NEWLINE = ord("\n")

WHITESPACE = frozenset(b" \t\n\r\v\f")
# NEL and NO-BREAK SPACE as raw Latin-1 bytes; not JSON whitespace.
EXTENDED_WHITESPACE = WHITESPACE | {0x85, 0xA0}

DIGITS = frozenset(b"0123456789")
NUMBER_START = DIGITS | frozenset(b"+-")
NUMBER_BYTES = DIGITS | frozenset(b"+-.eE")
FLOAT_MARKERS = frozenset(".eE")

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

REPLACEMENT_CHARACTER = "\ufffd"

_HIGH_SURROGATES = range(0xD800, 0xDC00)
_LOW_SURROGATES = range(0xDC00, 0xE000)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "'": "'",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_NEEDS_UNQUOTE = re.compile(rb'[\\"\x00-\x1f]')
_SPECIAL_CHAR = re.compile(r'[\\"\x00-\x1f]')


def whitespace_bytes(extended: bool = True) -> frozenset[Byte]:
    """
    Returns the set of skippable whitespace bytes.

    With ``extended`` the Latin-1 bytes 0x85 and 0xA0 also count, which some
    producers emit between documents.
    """
    return EXTENDED_WHITESPACE if extended else WHITESPACE


def describe_byte(byte: Byte) -> str:
    """Renders a byte for diagnostics, escaping anything non-printable."""
    if byte == EOF:
        return "end of file"
    if 0x20 < byte < 0x7F:
        return chr(byte)
    return f"\\x{byte:02x}"


def _read_hex4(text: str, index: int) -> int | None:
    """
    Decodes ``\\uXXXX`` starting at ``index``.

    Returns None when the text at ``index`` is not a complete escape with
    exactly four hex digits.
    """
    if text[index : index + 2] != "\\u":
        return None
    digits = text[index + 2 : index + 6]
    if len(digits) != 4 or not all(c in _HEX_DIGITS for c in digits):
        return None
    return int(digits, 16)


def _decode_unicode_escape(text: str, index: int) -> tuple[str, int]:
    """
    Decodes the ``\\u`` escape at ``index``, pairing surrogates.

    Returns the decoded character and the index just past the consumed
    escape(s). A surrogate that does not form a valid pair decodes to U+FFFD
    and leaves any following escape for the caller.
    """
    code = _read_hex4(text, index)
    if code is None:
        raise ValueError(
            f"Invalid unicode escape sequence: {text[index : index + 6]}"
        )
    index += 6

    if code in _HIGH_SURROGATES:
        low = _read_hex4(text, index)
        if low is not None and low in _LOW_SURROGATES:
            pair = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
            return chr(pair), index + 6
        return REPLACEMENT_CHARACTER, index
    if code in _LOW_SURROGATES:
        return REPLACEMENT_CHARACTER, index
    return chr(code), index


def decode_string(raw: bytes) -> str:
    """
    Unquotes the body of a JSON string (the bytes between the quotes).

    Runs without a backslash, quote or control byte are copied unchanged.
    Escapes are rewritten to their characters and ``\\uXXXX`` surrogate pairs
    are reassembled. Malformed UTF-8 is coerced to U+FFFD.

    Raises:
        ValueError: on an unknown or truncated escape, an unescaped quote or a
            control character below 0x20.
    """
    with ProfileContext("decode_string", len(raw)):
        text = raw.decode("utf-8", errors="replace")
        if _NEEDS_UNQUOTE.search(raw) is None:
            return text

        parts: list[str] = []
        index = 0
        length = len(text)
        while index < length:
            match = _SPECIAL_CHAR.search(text, index)
            if match is None:
                parts.append(text[index:])
                break

            start = match.start()
            if start > index:
                parts.append(text[index:start])

            char = text[start]
            if char != "\\":
                raise ValueError(f"Invalid character in string: {char!r}")
            if start + 1 >= length:
                raise ValueError("Incomplete escape sequence")

            escape = text[start + 1]
            if escape in _SIMPLE_ESCAPES:
                parts.append(_SIMPLE_ESCAPES[escape])
                index = start + 2
            elif escape == "u":
                decoded, index = _decode_unicode_escape(text, start)
                parts.append(decoded)
            else:
                raise ValueError(f"Invalid escape sequence: \\{escape}")

        return "".join(parts)


def is_float_lexeme(lexeme: str) -> bool:
    """A lexeme is a float when it contains '.', 'e' or 'E'."""
    return any(c in FLOAT_MARKERS for c in lexeme)


def parse_number(
    lexeme: str,
    parse_int: Callable[[str], Any] | None = None,
    parse_float: Callable[[str], Any] | None = None,
) -> Any:
    """
    Converts a numeric lexeme to a signed 64-bit int or a float.

    The representation is chosen lexically, never by magnitude, so ``10``
    yields an int and ``10.0`` a float. Hooks receive the raw lexeme and
    replace the default conversion.

    Raises:
        ValueError: when the lexeme is malformed or out of range.
    """
    with ProfileContext("parse_number", len(lexeme)):
        if is_float_lexeme(lexeme):
            if parse_float is not None:
                return parse_float(lexeme)
            value = float(lexeme)
            if math.isinf(value):
                raise ValueError(f"value out of range: {lexeme!r}")
            return value

        if parse_int is not None:
            return parse_int(lexeme)
        integer = int(lexeme, 10)
        if not INT64_MIN <= integer <= INT64_MAX:
            raise ValueError(f"value out of range: {lexeme!r}")
        return integer
